import argparse
import gzip
import os
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Sample sites for exercising the resource report
# - shop: storefront, mostly GET with query strings, some cart POSTs
# - api: JSON API, heavy POST and a few PUT/DELETE that the default verb filter drops
# - admin: back office, the usual candidate for --ignore /admin

SITE_PROFILES = [
    {
        "name": "shop",
        "paths": [
            ("/", 0.18),
            ("/products", 0.16),
            ("/products?page=2", 0.08),
            ("/products/featured", 0.10),
            ("/cart", 0.12),
            ("/cart/add", 0.08),
            ("/checkout", 0.06),
            ("/static/site.css", 0.11),
            ("/static/app.js", 0.11),
        ],
        "methods": [("GET", 0.82), ("POST", 0.14), ("HEAD", 0.04)],
        "statuses": [(200, 0.86), (302, 0.04), (404, 0.07), (500, 0.03)],
        "rows_multiplier": 1.2,
    },
    {
        "name": "api",
        "paths": [
            ("/api/v1/users", 0.22),
            ("/api/v1/orders", 0.20),
            ("/api/v1/search?q=shoes", 0.14),
            ("/api/v1/auth/login", 0.16),
            ("/api/v1/auth/logout", 0.08),
            ("/health", 0.20),
        ],
        "methods": [("GET", 0.55), ("POST", 0.33), ("PUT", 0.07), ("DELETE", 0.05)],
        "statuses": [(200, 0.80), (201, 0.08), (400, 0.05), (401, 0.04), (500, 0.03)],
        "rows_multiplier": 1.0,
    },
    {
        "name": "admin",
        "paths": [
            ("/admin/dashboard", 0.25),
            ("/admin/users", 0.20),
            ("/admin/settings", 0.15),
            ("/reports/daily", 0.20),
            ("/reports/export", 0.20),
        ],
        "methods": [("GET", 0.70), ("POST", 0.30)],
        "statuses": [(200, 0.85), (401, 0.05), (403, 0.07), (500, 0.03)],
        "rows_multiplier": 0.5,
    },
]


def weighted_choice(options):
    r = random.random()
    cumulative = 0.0
    for value, weight in options:
        cumulative += weight
        if r <= cumulative:
            return value
    return options[-1][0]


def random_ip():
    return ".".join(str(random.randint(1, 254)) for _ in range(4))


def random_bytes(status):
    if status >= 400:
        return random.randint(200, 2000)
    if status == 302:
        return random.randint(100, 400)
    return random.randint(800, 8000)


def generate_line(profile, base_time, span_hours):
    dt = base_time - timedelta(seconds=random.randint(0, span_hours * 3600))
    method = weighted_choice(profile["methods"])
    path = weighted_choice(profile["paths"])
    status = weighted_choice(profile["statuses"])
    timestamp = dt.strftime("%d/%b/%Y:%H:%M:%S %z")
    return f"{random_ip()} - - [{timestamp}] \"{method} {path} HTTP/1.1\" {status} {random_bytes(status)}\n"


def write_log(profile, base_rows, output_dir, span_hours, compress=False):
    rows = int(base_rows * profile.get("rows_multiplier", 1.0))
    base_time = datetime.now(timezone.utc).replace(microsecond=0)
    filename = Path(output_dir) / f"{profile['name']}.log"
    if compress:
        filename = filename.with_name(filename.name + ".gz")
        handle = gzip.open(filename, "wt", encoding="utf-8")
    else:
        handle = open(filename, "w", encoding="utf-8")
    with handle:
        for _ in range(rows):
            handle.write(generate_line(profile, base_time, span_hours))
    return filename, rows


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate sample common-log access files for the resource report.")
    parser.add_argument("--sites", type=int, default=3, help=f"Number of site logs to generate (max {len(SITE_PROFILES)}).")
    parser.add_argument("--rows", type=int, default=5000, help="Base rows per site (adjusted by profile multiplier).")
    parser.add_argument("--output-dir", default="logs", help="Directory for generated log files.")
    parser.add_argument("--span-hours", type=int, default=24, help="Time window for timestamps.")
    parser.add_argument("--gzip", action="store_true", help="Write .log.gz files instead of plain .log files.")
    parser.add_argument("--seed", type=int, help="RNG seed for reproducibility.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.seed is not None:
        random.seed(args.seed)

    available = len(SITE_PROFILES)
    if args.sites > available:
        raise SystemExit(f"--sites must be <= {available} (got {args.sites})")

    os.makedirs(args.output_dir, exist_ok=True)

    generated = []
    for profile in SITE_PROFILES[:args.sites]:
        generated.append(write_log(profile, args.rows, args.output_dir, args.span_hours, args.gzip))

    print(f"Generated {len(generated)} log files in {Path(args.output_dir).resolve()}")
    for path, rows in generated:
        print(f"  - {path.name}: {rows} lines")


if __name__ == "__main__":
    main()
