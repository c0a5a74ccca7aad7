"""
Nuxt S3 Fix - Main CLI Entry Point

Generates or executes AWS S3 commands that converge a Nuxt generated static
site bucket onto the SINGLE (one object per route) or DOUBLE (route object
plus index.html object) layout, driven by the site's sitemap.xml.

Usage:
    python main.py fix <bucket_uri> [-e] [-2] [-o FILE] [-l REGION] [-s SITEMAP] [--dry-run]
    python main.py status <bucket_uri> [-l REGION] [-s SITEMAP]
    python main.py batch [--config CONFIG] [-e] [--dry-run]
    python main.py init [--config CONFIG]
"""

import argparse
import os
import sys
from typing import List, Optional, Tuple


def check_dependencies():
    """Check that all required dependencies are installed."""
    missing = []

    try:
        import boto3
    except ImportError:
        missing.append("boto3")

    try:
        import requests
    except ImportError:
        missing.append("requests")

    if missing:
        print("=" * 60)
        print("ERROR: Missing required dependencies!")
        print("=" * 60)
        print()
        print("The following packages are not installed:")
        for pkg in missing:
            print(f"  - {pkg}")
        print()
        print("To install, run:")
        print("  pip3 install -r requirements.txt")
        print()
        sys.exit(1)


# Run dependency check immediately
check_dependencies()

# Now import the rest (these depend on boto3 and requests)
from commands import CommandFormatter, render_script
from config import DEFAULT_CONFIG_PATH, create_sample_config, parse_config
from exceptions import LayoutFixError
from keys import build_key_triples
from layout import count_layouts
from logger import Logger
from models import Action, CommandType, Layout
from planner import LayoutPlanner
from report import LayoutReport, optimized_routes
from s3_client import S3Client
from sitemap import build_sitemap_locator, fetch_routes, parse_s3_uri, validate_bucket_uri


def open_bucket(bucket_uri: str, region: Optional[str], log: Logger) -> S3Client:
    """S3 client scoped to the bucket and key prefix of a bucket URI."""
    bucket, prefix, _ = parse_s3_uri(bucket_uri)
    return S3Client(bucket, prefix=prefix, region=region, log=log)


def load_report(
    bucket_uri: str,
    target_layout: Layout,
    region: Optional[str],
    sitemap: Optional[str],
    s3: S3Client,
    log: Logger
) -> LayoutReport:
    """
    Fetch routes, build key triples and check their existence.

    Raises:
        LayoutFixError: On an invalid bucket URI, sitemap or storage failure.
    """
    validate_bucket_uri(bucket_uri)
    locator = build_sitemap_locator(bucket_uri, sitemap, region)
    report = LayoutReport(
        bucket_uri=bucket_uri,
        region=region,
        sitemap_locator=locator,
        target_layout=target_layout,
    )

    routes = fetch_routes(locator, S3Client, log)
    if not routes:
        log.warn(f"No paths found in the sitemap at {locator}")
        return report
    log.info(f"Sitemap paths found total: {len(routes)}")

    report.routes, report.routes_excluded, report.triples = build_key_triples(routes, log)
    if not report.triples:
        return report

    report.existence = s3.check_exists(report.keys)
    return report


def dispatch_actions(
    actions: List[Action],
    report: LayoutReport,
    s3: S3Client,
    execute: bool,
    dry_run: bool,
    log: Logger
) -> Tuple[int, int, str]:
    """
    Execute or render GENERATED actions, one at a time.

    A failed execution is recorded in the report and does not stop the rest.

    Returns:
        (done, not done because of --dry-run, rendered commands)
    """
    done = 0
    held = 0
    script = ""
    for action in actions:
        op = action.command_type.value.upper()
        if execute:
            if dry_run:
                log.debug(f"Skipped execute '{op}' to '{action.target_key}'")
                report.record_not_executed(action)
                held += 1
                continue
            log.debug(f"Executing '{op}' to '{action.target_key}'")
            if action.command_type == CommandType.COPY:
                success = s3.copy_object(action.source_key, action.target_key)
            else:
                success = s3.delete_object(action.target_key)
            report.record_execution(action, success)
            if success:
                done += 1
        elif dry_run:
            log.debug(f"Skipped generating {op} to '{action.target_key}'")
            held += 1
        else:
            log.debug(f"Generated command: '{op}' to '{action.target_key}'")
            script += render_script([action])
            done += 1
    return done, held, script


def run_fix(
    bucket_uri: str,
    log: Logger,
    execute: bool = False,
    double_layout: bool = False,
    output_file: Optional[str] = None,
    region: Optional[str] = None,
    sitemap: Optional[str] = None,
    dry_run: bool = False
) -> int:
    """
    Plan and then execute or render the convergence of one bucket.

    Returns:
        Process exit code.

    Raises:
        LayoutFixError: On invalid input or an external failure before planning.
    """
    if execute and output_file:
        log.error("Actions are to be executed but an output file for command generation was specified.")
        return 1

    if dry_run:
        log.info("Dry run mode enabled, so no COPY or REMOVE actions will be executed or generated.")

    validate_bucket_uri(bucket_uri)
    target = Layout.DOUBLE if double_layout else Layout.SINGLE
    s3 = open_bucket(bucket_uri, region, log)
    report = load_report(bucket_uri, target, region, sitemap, s3, log)

    if not report.routes:
        log.warn("No paths found in the sitemap.xml file. Exiting.")
        return 0
    if not report.triples:
        log.warn("No valid S3 object keys can be created from the paths found in the sitemap.xml file. Exiting.")
        return 0

    log.info(f"Desired S3 layout for sitemap.xml paths: {target.value.upper()}")
    planner = LayoutPlanner(report, CommandFormatter(bucket_uri, region), log)

    log.info("Checking AWS S3 bucket for COPY optimization commands")
    planner.run_copy_pass()
    copy_done, copy_held, script = dispatch_actions(
        report.copy_generated, report, s3, execute, dry_run, log)
    copy_all_paths = bool(report.copy_generated) and not planner.needs_remove_pass()

    remove_done = remove_held = 0
    if planner.needs_remove_pass():
        log.info("Checking AWS S3 bucket for REMOVE optimization commands")
        planner.run_remove_pass()
        remove_done, remove_held, remove_script = dispatch_actions(
            report.remove_generated, report, s3, execute, dry_run, log)
        script += remove_script

    _report_optimized(report, log)
    layout_name = target.value.upper()
    log.debug(report.summary())

    if execute:
        if copy_done == 0 and copy_held == 0:
            log.result("No COPY actions are available to be executed.")
        if copy_held > 0 and report.remove_pass_run:
            log.result(f"{copy_held} COPY actions were skipped. During a live run, "
                       f"each successful COPY action may trigger REMOVE action(s).")
        elif report.remove_pass_run and remove_done == 0 and remove_held == 0:
            log.result("No REMOVE actions are available to be executed.")
    else:
        if copy_done == 0 and copy_held == 0:
            log.result("No COPY commands available to be generated.")
        if report.remove_pass_run and remove_done == 0 and remove_held == 0:
            log.result("No REMOVE commands available to be generated.")

    if execute and (copy_done or remove_done):
        log.result(f"Actions executed COPY: {copy_done} REMOVE: {remove_done}")
    if execute and (copy_held or remove_held):
        log.result(f"Actions *not* executed, --dry-run, COPY: {copy_held} REMOVE: {remove_held}")
    if not execute and (copy_done or remove_done):
        log.info(f"Commands generated COPY: {copy_done} REMOVE: {remove_done}")
    if not execute and (copy_held or remove_held):
        if copy_all_paths:
            log.info(f"All {report.route_count} paths need COPY actions for {layout_name} layout.")
            log.result(f"Please rerun this tool without --dry-run to generate {copy_held} COPY commands.")
        else:
            log.result(f"COPY command generation skipped (--dry-run): {copy_held} for {report.route_count} paths")
            log.result(f"REMOVE command generation skipped (--dry-run): {remove_held} for {report.route_count} paths")

    if not execute and copy_done > 0:
        log.info(f"After running the {copy_done} COPY commands, please rerun this tool "
                 f"for MORE commands until optimization is complete.")

    commands_generated = 0 if execute else copy_done + remove_done
    if commands_generated > 0:
        if output_file:
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(script)
            log.result(f"{commands_generated} AWS S3 CLI commands written to {output_file}")
        else:
            log.info(f"{commands_generated} AWS S3 CLI commands printed to console output:")
            log.result(script)

    if report.failed:
        failed_copies = sum(1 for a in report.failed if a.command_type == CommandType.COPY)
        log.error(f"Actions failed COPY: {failed_copies} REMOVE: {len(report.failed) - failed_copies}")
        return 1
    return 0


def _report_optimized(report: LayoutReport, log: Logger) -> None:
    """Compare routes already optimized according to each pass."""
    layout_name = report.target_layout.value.upper()
    copy_optimized = optimized_routes(report.copy_generated + report.copy_skipped)
    remove_optimized = optimized_routes(report.remove_generated + report.remove_skipped)
    if not copy_optimized and not remove_optimized:
        return
    if copy_optimized and remove_optimized and copy_optimized != remove_optimized:
        log.error(f"Mismatch in optimized key counts COPY: {copy_optimized} "
                  f"REMOVE: {remove_optimized} in {layout_name} layout")
    else:
        log.info(f"Keys already optimized in {layout_name} layout: "
                 f"{max(copy_optimized, remove_optimized)}")


def make_logger(args, command: str) -> Logger:
    logger = Logger(log_dir=getattr(args, 'log_dir', None), command=command)
    if getattr(args, 'quiet', False):
        logger.set_level('quiet')
    else:
        logger.set_debug(getattr(args, 'debug', False))
    return logger


def cmd_fix(args):
    """Execute the fix command."""
    logger = make_logger(args, "fix")
    logger.start()
    logger.debug(f"S3Bucket {args.bucket}")
    logger.debug(f"options {vars(args)}")
    try:
        code = run_fix(
            args.bucket,
            logger,
            execute=args.execute_commands,
            double_layout=args.double_layout,
            output_file=args.output_file,
            region=args.specific_region,
            sitemap=args.sitemap_location,
            dry_run=args.dry_run,
        )
    except LayoutFixError as e:
        logger.error(str(e))
        code = 1
    finally:
        logger.close()
    sys.exit(code)


def cmd_status(args):
    """Show the observed layout of every sitemap route."""
    logger = make_logger(args, "status")
    logger.start()
    try:
        s3 = open_bucket(args.bucket, args.specific_region, logger)
        report = load_report(args.bucket, Layout.UNKNOWN, args.specific_region,
                             args.sitemap_location, s3, logger)
    except LayoutFixError as e:
        logger.error(str(e))
        logger.close()
        sys.exit(1)

    logger.result(f"Nuxt S3 Fix - Status")
    logger.result(f"{'=' * 50}")
    logger.result(f"Bucket:   {report.bucket_uri}")
    logger.result(f"Sitemap:  {report.sitemap_locator}")
    logger.result(f"Paths:    {report.route_count} ({len(report.routes_excluded)} excluded)")
    logger.result("")
    logger.result("Observed layouts:")
    for layout, count in count_layouts(report.triples, report.existence).items():
        logger.result(f"  {layout.value.upper():<8} {count}")
    logger.close()


def cmd_batch(args):
    """Run fix for every bucket in the config file."""
    logger = make_logger(args, "batch")
    logger.start()

    logger.result(f"Nuxt S3 Fix - Batch Mode")
    logger.result(f"{'=' * 50}")
    logger.result(f"Config: {args.config}")
    logger.result(f"Execute: {args.execute_commands}")
    logger.result(f"Dry run: {args.dry_run}")
    logger.result("")

    try:
        targets = parse_config(args.config)
    except FileNotFoundError as e:
        logger.error(str(e))
        logger.result(f"\nCreate a config file at {DEFAULT_CONFIG_PATH}")
        logger.result("Or run: python main.py init")
        logger.close()
        sys.exit(1)
    except LayoutFixError as e:
        logger.error(str(e))
        logger.close()
        sys.exit(1)

    if not targets:
        logger.error("No buckets found in config file.")
        logger.close()
        sys.exit(1)

    failures = 0
    for i, target in enumerate(targets, 1):
        logger.result(f"[{i}/{len(targets)}] {target.get_bucket_uri_region()} ({target.layout})")
        logger.result("-" * 50)
        try:
            code = run_fix(
                target.bucket_uri,
                logger,
                execute=args.execute_commands,
                double_layout=target.get_target_layout() == Layout.DOUBLE,
                region=target.region,
                sitemap=target.sitemap,
                dry_run=args.dry_run,
            )
        except LayoutFixError as e:
            logger.error(str(e))
            code = 1
        if code:
            failures += 1
        logger.result("")

    logger.result(f"Batch complete: {len(targets) - failures}/{len(targets)} buckets succeeded")
    logger.close()
    sys.exit(1 if failures else 0)


def cmd_init(args):
    """Create a sample config file."""
    config_path = args.config or DEFAULT_CONFIG_PATH

    if os.path.exists(config_path):
        print(f"Config file already exists: {config_path}")
        print("Delete it first if you want to create a new one.")
        sys.exit(1)

    create_sample_config(config_path)
    print(f"Created sample config file: {config_path}")
    print("Edit this file to add your buckets.")


def _add_verbosity(parser):
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Only show warnings, errors and command output. Overrides debug mode')
    parser.add_argument('--debug', '-d', action='store_true', help='Enable verbose debug output')
    parser.add_argument('--log-dir', default=None, help='Also write a timestamped log file to this directory')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nuxtss-s3-fix",
        description="Nuxt S3 Fix - Converge a Nuxt static site S3 bucket onto the single or double layout"
    )
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Fix command
    fix_parser = subparsers.add_parser('fix', help='Generate or execute COPY/REMOVE commands for a bucket')
    fix_parser.add_argument('bucket', help="S3 bucket uri, e.g. 's3://bucket-name' or 's3://bucket-name/key'")
    fix_parser.add_argument('--execute-commands', '-e', action='store_true', help='Execute AWS commands')
    fix_parser.add_argument('--double-layout', '-2', action='store_true',
                            help='Keep both a route object and an index.html object (default: single layout)')
    fix_parser.add_argument('--output-file', '-o', default=None,
                            help='Output file for generated AWS CLI commands (default: console)')
    fix_parser.add_argument('--specific-region', '-l', default=None,
                            help='Non-default AWS region for the S3 bucket')
    fix_parser.add_argument('--sitemap-location', '-s', default=None,
                            help='Locator of the sitemap.xml (default: bucket root)')
    fix_parser.add_argument('--dry-run', '-n', action='store_true',
                            help='Perform a trial run with no changes made')
    _add_verbosity(fix_parser)
    fix_parser.set_defaults(func=cmd_fix)

    # Status command
    status_parser = subparsers.add_parser('status', help='Show the observed layout of each route')
    status_parser.add_argument('bucket', help='S3 bucket uri')
    status_parser.add_argument('--specific-region', '-l', default=None, help='Non-default AWS region')
    status_parser.add_argument('--sitemap-location', '-s', default=None, help='Locator of the sitemap.xml')
    _add_verbosity(status_parser)
    status_parser.set_defaults(func=cmd_status)

    # Batch command
    batch_parser = subparsers.add_parser('batch', help='Fix every bucket in the config file')
    batch_parser.add_argument('--config', '-c', default=DEFAULT_CONFIG_PATH,
                              help=f'Config file path (default: {DEFAULT_CONFIG_PATH})')
    batch_parser.add_argument('--execute-commands', '-e', action='store_true', help='Execute AWS commands')
    batch_parser.add_argument('--dry-run', '-n', action='store_true',
                              help='Perform a trial run with no changes made')
    _add_verbosity(batch_parser)
    batch_parser.set_defaults(func=cmd_batch)

    # Init command
    init_parser = subparsers.add_parser('init', help='Create sample config file')
    init_parser.add_argument('--config', '-c', default=None,
                             help=f'Config file path (default: {DEFAULT_CONFIG_PATH})')
    init_parser.set_defaults(func=cmd_init)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == '__main__':
    main()
