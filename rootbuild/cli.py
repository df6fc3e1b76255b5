from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rootbuild.config_loader import discover_build_file, load_build_file
from rootbuild.core import Options, build_context
from rootbuild.manifest import BuildManifest, default_manifest, parse_manifest
from rootbuild.plugins.api import ResolutionError
from rootbuild.plugins.factory import ResolverFactory
from rootbuild.plugins.loader import load_plugins
from rootbuild.tasks import CleanError, builtin_tasks
from rootbuild.util import xdg_cache_home

EXIT_OK = 0
EXIT_TASK_FAILED = 1
EXIT_CONFIG_ERROR = 2


def _setup_logger(verbose: bool) -> logging.Logger:
    logger = logging.getLogger("rootbuild")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


def _load_manifest(project_dir: Path, build_file: Path | None, logger: logging.Logger) -> BuildManifest:
    path = build_file or discover_build_file(project_dir)
    if path is None:
        logger.debug("No rootbuild.{toml,json,yaml,yml} in %s; using the default Android manifest", project_dir)
        return default_manifest()
    logger.debug("Using build file %s", path)
    return parse_manifest(load_build_file(path))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="rootbuild")
    parser.add_argument(
        "task",
        choices=["configure", "clean", "tasks"],
        help="Task to run. 'tasks' lists the available tasks.",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Root project directory (default: current directory). The build dir is resolved relative to it.",
    )
    parser.add_argument(
        "--build-file",
        type=Path,
        default=None,
        help="Build file to load instead of rootbuild.{toml,json,yaml,yml} in the project dir.",
    )
    parser.add_argument(
        "--plugins-dir",
        action="append",
        type=Path,
        default=[],
        help="Directory containing additional repository plugins (*.py). Can be specified multiple times. "
        "Also supports ROOTBUILD_PLUGINS_DIRS and ~/.config/rootbuild/plugins.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log actions but do not change the filesystem.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact remote repositories; use local repositories and cached resolutions only.",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Neither read nor write the resolution cache.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose logs.",
    )
    args = parser.parse_args(argv)

    logger = _setup_logger(args.verbose)

    project_dir: Path = args.project_dir
    if not project_dir.is_dir():
        logger.error("Project dir not found: %s", project_dir)
        return EXIT_CONFIG_ERROR
    if args.build_file is not None and not args.build_file.is_file():
        logger.error("Build file not found: %s", args.build_file)
        return EXIT_CONFIG_ERROR

    try:
        manifest = _load_manifest(project_dir, args.build_file, logger)
    except (OSError, ValueError) as e:
        logger.error("Failed to load build file: %s", e)
        return EXIT_CONFIG_ERROR

    options = Options(dry_run=bool(args.dry_run), offline=bool(args.offline))
    cache_path = None if args.no_cache else xdg_cache_home() / "rootbuild" / "resolutions.json"
    ctx = build_context(
        project_dir=project_dir,
        manifest=manifest,
        options=options,
        logger=logger,
        cache_path=cache_path,
    )

    loaded_plugins = load_plugins(plugin_dirs=list(args.plugins_dir))
    for err in loaded_plugins.errors:
        logger.warning("%s", err)
    try:
        factory = ResolverFactory(loaded_plugins.plugins)
    except ValueError as e:
        logger.error("Invalid repository plugins: %s", e)
        return EXIT_CONFIG_ERROR
    logger.debug("Registered repository kinds: %s", ", ".join(factory.registered_kinds))

    tasks = builtin_tasks(factory)
    if args.task == "tasks":
        for name, task in tasks.items():
            logger.info("%s - %s", name, task.description)
        return EXIT_OK

    task = tasks[args.task]
    desc = manifest.description or ctx.project_dir.name
    ver = manifest.version if manifest.version is not None else "?"
    logger.info("# %s v%s: %s", desc, ver, task.name)
    try:
        msg = task.apply(ctx)
    except (ResolutionError, CleanError) as e:
        logger.error("%s", e)
        return EXIT_TASK_FAILED
    except ValueError as e:
        logger.error("Invalid build configuration: %s", e)
        return EXIT_CONFIG_ERROR

    logger.info("└─ %s", msg)
    return EXIT_OK
