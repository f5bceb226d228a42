"""External tool invocation shared by every store that shells out to platform tooling."""

from __future__ import annotations

import logging
import shutil
import subprocess

from cert_manage.core.errors import StoreIOError, StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


def tool_exists(name: str) -> bool:
    return shutil.which(name) is not None


def run_tool(
    store: str,
    args: list[str],
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Run a platform tool and return its stdout.

    A missing executable raises StoreUnavailableError; a timeout or a non-zero
    exit status raises StoreIOError carrying the tool's stderr.
    """
    logger.debug("Running %s", " ".join(args))
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise StoreUnavailableError(store, f"'{args[0]}' was not found on this system") from e
    except subprocess.TimeoutExpired as e:
        raise StoreIOError(store, f"'{args[0]}' timed out after {timeout:g}s") from e
    except OSError as e:
        raise StoreIOError(store, f"could not run '{args[0]}': {e}") from e

    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip()
        raise StoreIOError(
            store, f"'{' '.join(args[:2])}' exited with status {result.returncode}: {detail}"
        )
    return result.stdout
