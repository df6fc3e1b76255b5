from __future__ import annotations

import glob
import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path

from rootbuild.classpath import resolve_classpath
from rootbuild.core import Context, Task
from rootbuild.ordering import configure_subprojects
from rootbuild.plugins.factory import ResolverFactory
from rootbuild.util import can_modify_dir

TRASH_MARKER = ".rootbuild-trash-"


class CleanError(RuntimeError):
    pass


def _trash_path(target: Path) -> Path:
    return target.parent / f".{target.name}{TRASH_MARKER}{os.getpid()}"


def _pid_alive(pid: int) -> bool:
    if pid == os.getpid():
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else.
        return True
    except OSError:
        return False
    return True


def _stale_trash(target: Path) -> list[Path]:
    """Trash siblings left by interrupted cleans; trash of a clean still running is skipped."""
    pattern = f".{glob.escape(target.name)}{TRASH_MARKER}*"
    out: list[Path] = []
    for p in sorted(target.parent.glob(pattern)):
        suffix = p.name.rsplit(TRASH_MARKER, 1)[-1]
        if suffix.isdigit() and _pid_alive(int(suffix)):
            continue
        out.append(p)
    return out


def _lstat_or_none(target: Path) -> os.stat_result | None:
    # Only "missing" counts as absent; EACCES and friends must surface.
    try:
        return os.lstat(target)
    except (FileNotFoundError, NotADirectoryError):
        return None


def _preflight(target: Path, st: os.stat_result) -> list[str]:
    """
    Collect every reason the tree under `target` could not be removed completely.

    Removing an entry needs write+search permission on the directory holding it,
    and listing a directory needs read permission.
    """
    problems: list[str] = []
    parent = target.parent
    if not can_modify_dir(parent):
        problems.append(f"no permission to remove entries from {parent}")

    if not stat.S_ISDIR(st.st_mode):
        return problems

    def onerror(e: OSError) -> None:
        problems.append(f"cannot list {e.filename}: {e.strerror}")

    for dirpath, dirnames, filenames in os.walk(target, onerror=onerror):
        if (dirnames or filenames) and not can_modify_dir(Path(dirpath)):
            problems.append(f"no permission to remove entries from {dirpath}")
    return problems


def _count_entries(target: Path, st: os.stat_result) -> int:
    if not stat.S_ISDIR(st.st_mode):
        return 1
    total = 0
    for _dirpath, dirnames, filenames in os.walk(target):
        total += len(dirnames) + len(filenames)
    return total


def _remove(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        path.unlink()
        return
    shutil.rmtree(path)


@dataclass(frozen=True)
class CleanTask:
    name: str = "clean"
    description: str = "Deletes the shared build directory."

    def _guard(self, ctx: Context, target: Path) -> None:
        # Compare real paths so a symlinked project dir cannot hide an ancestor.
        project_dir = ctx.layout.project_dir.resolve()
        real_target = target.resolve()
        if real_target == Path(real_target.anchor):
            raise CleanError(f"Refusing to delete filesystem root {target}")
        if project_dir == real_target or real_target in project_dir.parents:
            raise CleanError(
                f"Refusing to delete {target}: it contains the project directory {ctx.layout.project_dir}"
            )

    def apply(self, ctx: Context) -> str:
        target = ctx.layout.root_build_dir
        try:
            self._guard(ctx, target)
            st = _lstat_or_none(target)
            stale = _stale_trash(target) if target.parent.is_dir() else []
            problems = _preflight(target, st) if st is not None else []
        except OSError as e:
            raise CleanError(f"Cannot inspect {target}: {e}. Nothing was deleted.") from e

        if ctx.options.dry_run:
            if stale:
                ctx.logger.info("Would remove %d leftover trash dir(s) next to %s", len(stale), target)
            if st is None:
                return f"Build directory {target} does not exist; nothing to clean."
            return f"Would delete {target} ({_count_entries(target, st)} entries)."

        for leftover in stale:
            ctx.logger.debug("Removing leftover %s from an interrupted clean", leftover)
            try:
                _remove(leftover)
            except OSError as e:
                raise CleanError(f"Failed to remove leftover {leftover}: {e}") from e

        if st is None:
            return f"Build directory {target} does not exist; nothing to clean."

        if problems:
            for p in problems:
                ctx.logger.debug("clean preflight: %s", p)
            raise CleanError(
                f"Cannot delete {target}: {problems[0]}"
                + (f" (and {len(problems) - 1} more)" if len(problems) > 1 else "")
                + ". Nothing was deleted."
            )

        if not stat.S_ISDIR(st.st_mode):
            # Plain file or symlink; a symlink is unlinked, never followed.
            try:
                target.unlink()
            except OSError as e:
                raise CleanError(f"Failed to delete {target}: {e}") from e
            return f"Deleted {target}."

        # Move the tree out of the way first so an interrupted clean never leaves
        # a half-deleted build dir under the real name; leftovers are retried above.
        trash = _trash_path(target)
        try:
            os.rename(target, trash)
        except OSError as e:
            raise CleanError(f"Failed to delete {target}: {e}. Nothing was deleted.") from e
        ctx.logger.debug("Moved %s to %s", target, trash)

        try:
            shutil.rmtree(trash)
        except OSError as e:
            raise CleanError(
                f"Failed to delete {target}: {e}. Remaining files are in {trash}; run clean again."
            ) from e
        return f"Deleted build directory {target}."


@dataclass(frozen=True)
class ConfigureTask:
    factory: ResolverFactory
    name: str = "configure"
    description: str = "Resolves the buildscript classpath and configures subprojects."

    def apply(self, ctx: Context) -> str:
        artifacts = resolve_classpath(ctx, self.factory)
        ctx.logger.info("Buildscript classpath:")
        for a in artifacts:
            ctx.logger.info("- %s from %s", a.coordinate, a.repository)

        projects = configure_subprojects(ctx)
        ctx.logger.info("Build dir: %s", ctx.layout.root_build_dir)
        for p in projects:
            ctx.logger.info("- %s -> %s", p.path, p.build_dir)

        return (
            f"Resolved {len(artifacts)} classpath artifact(s); "
            f"configured {len(projects)} subproject(s)."
        )


def builtin_tasks(factory: ResolverFactory) -> dict[str, Task]:
    tasks: list[Task] = [ConfigureTask(factory=factory), CleanTask()]
    return {t.name: t for t in tasks}
