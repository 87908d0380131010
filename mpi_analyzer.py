import argparse

from mpi4py import MPI

from resource_config import ResourceReportError, add_option_arguments, build_config, collect_options
from resource_core import analyze_file, compile_filter, drain_stats, list_log_files, merge_stats, new_stats, partition_files
from resource_report import rank_resources, write_report


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="MPI resource counter (head rank + workers sharing the log files)")
    add_option_arguments(parser)
    return parser.parse_args(argv)


def prepare(args):
    config = build_config(collect_options(args))
    pattern = compile_filter(config.verbs, config.ignore)
    files = list_log_files(config.logs, config.log_extension)
    return config, pattern, files


def analyze_shard(shard, pattern):
    return [(str(path), analyze_file(path, pattern)) for path in shard]


def main(argv=None):
    args = parse_args(argv)
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    world_size = comm.Get_size()

    if rank == 0:
        try:
            config, pattern, files = prepare(args)
        except ResourceReportError as exc:
            comm.bcast(None, root=0)
            raise SystemExit(f"Error: {exc}")
        comm.bcast((config, files), root=0)

        if world_size == 1:
            gathered = [None, analyze_shard(files, pattern)]
        else:
            gathered = comm.gather(None, root=0)

        by_path = {}
        for results in gathered[1:]:
            by_path.update(results)

        merged = new_stats()
        for path in files:
            merge_stats(merged, by_path[str(path)])

        rows = rank_resources(drain_stats(merged), config.log_source)
        try:
            report_path = write_report(config.report, rows)
        except ResourceReportError as exc:
            raise SystemExit(f"Error: {exc}")

        print("MPI resource report complete:")
        print(f"- CSV report: {report_path} ({len(rows)} resources from {merged['files']} files)")
        for path, reason in merged["failures"]:
            print(f"- Skipped rest of {path}: {reason}")
        return

    # Worker ranks
    payload = comm.bcast(None, root=0)
    if payload is None:
        return
    config, files = payload
    pattern = compile_filter(config.verbs, config.ignore)
    shard = partition_files(files, world_size - 1)[rank - 1]
    comm.gather(analyze_shard(shard, pattern), root=0)


if __name__ == "__main__":
    main()
