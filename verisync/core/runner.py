# verisync/core/runner.py
"""
Orchestrates a comparison run: fetch both sources concurrently, parse,
filter and classify.

The two fetches are independent blocking calls. They run on a private
two-thread pool and are each bounded by `timeout`. The pool is released
without waiting when the fetch step returns, so a timed-out fetch that is
still stuck in its thread cannot hold the run open. Any fetch failure
aborts the run before classification, so a ComparisonResult is only ever
built from two complete manifests.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Tuple

from verisync.core.classifier import compare_manifests
from verisync.core.fetcher import ManifestFetcher
from verisync.core.parser import parse_manifest
from verisync.exceptions import FetchError, FetchTimeout
from verisync.schemas.comparison import ComparisonResult
from verisync.utils.log_sinks import run_id_context
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)

FetchCall = Callable[[ManifestFetcher, Optional[float]], str]


def _fetch_manifest(fetcher: ManifestFetcher, timeout: Optional[float]) -> str:
    return fetcher.fetch(timeout=timeout)


def _fetch_history(fetcher: ManifestFetcher, timeout: Optional[float]) -> str:
    return fetcher.fetch_history(timeout=timeout)


async def _fetch_one(
    pool: ThreadPoolExecutor,
    fetcher: ManifestFetcher,
    timeout: Optional[float],
    call: FetchCall,
) -> str:
    loop = asyncio.get_running_loop()
    # Worker threads log under the caller's run id.
    ctx = contextvars.copy_context()
    job = loop.run_in_executor(pool, functools.partial(ctx.run, call, fetcher, timeout))
    try:
        return await asyncio.wait_for(job, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise FetchTimeout(fetcher.source_name, timeout) from e


async def fetch_both(
    fetcher_a: ManifestFetcher,
    fetcher_b: ManifestFetcher,
    timeout: Optional[float] = None,
    call: FetchCall = _fetch_manifest,
) -> Tuple[str, str]:
    """
    Fetch from both sources concurrently and wait for both.

    Returns as soon as both fetches have finished or timed out; a thread
    left behind by a timeout is abandoned, not joined.

    :raises FetchError: The first failure in A-then-B order. Failures on the
                        other side are logged, not swallowed silently.
    """
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="verisync-fetch")
    try:
        results = await asyncio.gather(
            _fetch_one(pool, fetcher_a, timeout, call),
            _fetch_one(pool, fetcher_b, timeout, call),
            return_exceptions=True,
        )
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    errors = [r for r in results if isinstance(r, BaseException)]
    for error in errors:
        logger.error(f"Fetch failed: {error}")
    if errors:
        raise errors[0]
    return results[0], results[1]


async def run_comparison_async(
    fetcher_a: ManifestFetcher,
    fetcher_b: ManifestFetcher,
    *,
    timeout: Optional[float] = None,
    include: Optional[Iterable[str]] = None,
) -> ComparisonResult:
    """Fetch, parse, filter and classify two sources."""
    raw_a, raw_b = await fetch_both(fetcher_a, fetcher_b, timeout)

    outcome_a = parse_manifest(raw_a, fetcher_a.source_name)
    outcome_b = parse_manifest(raw_b, fetcher_b.source_name)

    patterns: List[str] = list(include or [])
    manifest_a = outcome_a.manifest.filtered(patterns)
    manifest_b = outcome_b.manifest.filtered(patterns)
    if patterns:
        logger.info(
            f"Include filter kept {len(manifest_a)}/{len(outcome_a.manifest)} "
            f"and {len(manifest_b)}/{len(outcome_b.manifest)} sessions"
        )

    return compare_manifests(
        manifest_a, manifest_b, issues=[*outcome_a.issues, *outcome_b.issues]
    )


def run_comparison(
    fetcher_a: ManifestFetcher,
    fetcher_b: ManifestFetcher,
    *,
    timeout: Optional[float] = None,
    include: Optional[Iterable[str]] = None,
    run_id: Optional[str] = None,
) -> ComparisonResult:
    """Synchronous entry point around `run_comparison_async`.

    :raises FetchError: If either source cannot be fetched (FetchTimeout on timeout).
    """
    run_id_context.set(run_id or uuid.uuid4().hex[:12])
    logger.info(
        f"Starting comparison {fetcher_a.source_name} <-> {fetcher_b.source_name}",
        extra={"timeout": timeout},
    )
    try:
        return asyncio.run(
            run_comparison_async(fetcher_a, fetcher_b, timeout=timeout, include=include)
        )
    except FetchError:
        logger.error("Comparison aborted: a source could not be fetched")
        raise


def fetch_histories(
    fetcher_a: ManifestFetcher,
    fetcher_b: ManifestFetcher,
    *,
    timeout: Optional[float] = None,
) -> Tuple[str, str]:
    """Fetch both history indexes concurrently."""
    return asyncio.run(fetch_both(fetcher_a, fetcher_b, timeout, call=_fetch_history))
