"""vampire-deps - Maven dependency resolver for Android builds

    Sub-commands:
        deps: dry-run resolution, prints the dependency tree and version conflicts
        update: forced full resolution, rewrites the lock file
        resolve: lock-aware resolution used by the build

    Returns:
        int: Exit code
"""
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from args import parse_args
from cli_config import ConfigError, ResolverConfig, load_config_file
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from maven import MavenResolver, RepositoryClient, ResolutionError
from maven.declarations import load_declarations
from maven.tree import detect_conflicts, render_tree

logger = logging.getLogger(__name__)


def _setup_logging(args):
    """Configure logging based on CLI arguments."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ["VAMPIRE_LOG_LEVEL"] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def print_progress(label, downloaded, total):
    """Progress hook writing a single updating line to stderr."""
    if total:
        sys.stderr.write(f"Downloading {label}: {downloaded / total * 100:.2f}%\r")
    else:
        sys.stderr.write(f"Downloading {label}: {downloaded} bytes\r")
    sys.stderr.flush()


def build_coordinates(args):
    """Direct dependencies from ``-p`` flags, else from the manifest.

    Returns:
        list: ``group:artifact:version`` strings.
    """
    if getattr(args, "PACKAGES", None):
        return list(args.PACKAGES)
    manifest = Path(args.MANIFEST)
    if not manifest.is_file():
        raise ConfigError(f"Manifest not found: {manifest}")
    return load_declarations(manifest)


def create_resolver(config, quiet=False):
    """Wire a resolver and its repository client from the configuration."""
    client = RepositoryClient(
        cache_dir=config.cache_dir,
        repositories=config.repositories,
        timeout=config.timeout,
        progress=None if quiet else print_progress,
    )
    return MavenResolver(client, lock_file_path=config.lock_file)


async def run_deps(resolver, coordinates, error_on_warnings=False):
    """Print the dry-run tree and conflicts; return the exit code."""
    async with resolver.client:
        nodes = await resolver.resolve_dependencies_dry_run(coordinates)

    print("\nDependency Tree:")
    for line in render_tree(nodes):
        print(line)

    conflicts = detect_conflicts(nodes)
    if conflicts:
        print("\nVersion conflicts (nearest wins):")
        for conflict in conflicts:
            print(f"  {conflict.key}: resolved {conflict.resolved}, also requested {', '.join(conflict.requested)}")
        if error_on_warnings:
            return ExitCodes.EXIT_WARNINGS.value
    else:
        print("\nNo version conflicts.")
    return ExitCodes.SUCCESS.value


async def run_resolve(resolver, coordinates, force_update=False, output=None):
    """Resolve (or update) and report the artifacts; return the exit code."""
    async with resolver.client:
        artifacts = await resolver.resolve_with_lock(coordinates, force_update=force_update)

    for artifact in artifacts:
        print(f"{artifact.coordinate} ({artifact.artifact_type}) -> {artifact.jar_path}")
    logger.info("Resolved %d artifacts", len(artifacts))

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            json.dump([a.to_dict() for a in artifacts], fh, indent=2)
        logger.info("Wrote artifact list to %s", output)
    return ExitCodes.SUCCESS.value


def run(args):
    """Execute the parsed command and return its exit code."""
    try:
        config = ResolverConfig.from_sources(args, load_config_file(getattr(args, "CONFIG", None)))
        coordinates = build_coordinates(args)
    except (ConfigError, ResolutionError) as exc:
        logger.error("%s", exc)
        return ExitCodes.RESOLUTION_ERROR.value

    if not coordinates:
        logger.warning("No dependencies declared.")
        return ExitCodes.SUCCESS.value

    if is_debug_enabled(logger):
        logger.debug(
            "Starting command",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND, count=len(coordinates)),
        )

    resolver = create_resolver(config, quiet=getattr(args, "QUIET", False))
    try:
        if args.COMMAND == "deps":
            return asyncio.run(run_deps(resolver, coordinates, getattr(args, "ERROR_ON_WARNINGS", False)))
        return asyncio.run(
            run_resolve(
                resolver,
                coordinates,
                force_update=args.COMMAND == "update",
                output=getattr(args, "OUTPUT", None),
            )
        )
    except ResolutionError as exc:
        logger.error("Dependency resolution failed: %s", exc)
        return ExitCodes.RESOLUTION_ERROR.value
    except OSError as exc:
        logger.error("File system error: %s", exc)
        return ExitCodes.RESOLUTION_ERROR.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
