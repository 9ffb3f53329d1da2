"""Argument parsing functionality for vampire-deps."""

import argparse

from constants import Constants


def _add_common_arguments(parser):
    """Options shared by every sub-command."""
    parser.add_argument("--manifest",
                        dest="MANIFEST",
                        help=f"TOML manifest declaring dependencies (default: {Constants.MANIFEST_FILE})",
                        action="store", type=str,
                        default=Constants.MANIFEST_FILE)
    parser.add_argument("-p", "--package",
                        dest="PACKAGES",
                        help="Direct dependency as group:artifact:version (repeatable, replaces the manifest)",
                        action="append", type=str,
                        default=[])
    parser.add_argument("--lock-file",
                        dest="LOCK_FILE",
                        help=f"Lock file path (default: {Constants.LOCK_FILE})",
                        action="store", type=str)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Artifact cache directory",
                        action="store", type=str)
    parser.add_argument("--repository",
                        dest="REPOSITORIES",
                        help="Repository base URL (repeatable, replaces the defaults)",
                        action="append", type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Per-request timeout in seconds (default: {Constants.REQUEST_TIMEOUT})",
                        action="store", type=int)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store", type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default="INFO")
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not print download progress.",
                        action="store_true")


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="vampire-deps",
        description="Maven dependency resolver for Android builds",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    deps = subparsers.add_parser("deps", help="Resolve without downloading archives and print the dependency tree")
    _add_common_arguments(deps)
    deps.add_argument("--error-on-warnings",
                      dest="ERROR_ON_WARNINGS",
                      help="Exit with a non-zero status code if version conflicts are present.",
                      action="store_true")

    update = subparsers.add_parser("update", help="Force a full re-resolution and rewrite the lock file")
    _add_common_arguments(update)

    resolve = subparsers.add_parser("resolve", help="Resolve dependencies, reusing the lock file when it matches")
    _add_common_arguments(resolve)
    resolve.add_argument("-o", "--output",
                         dest="OUTPUT",
                         help="Write the resolved artifact list as JSON to this path",
                         action="store", type=str)

    return parser.parse_args(argv)
