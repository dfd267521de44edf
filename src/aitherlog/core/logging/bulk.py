"""
Batch ingestion of log requests.

Small batches, and batches where parallelism was not requested, are written
in order on the calling thread. Larger batches with ``parallel=True`` fan
out to a bounded thread pool; each worker re-enters the single-entry write
path. A failing request is recorded and never aborts the rest of the batch.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from aitherlog.core.config.store import ConfigurationStore
from aitherlog.core.logging.entry import CallSite, capture_call_site, merge_context
from aitherlog.core.logging.levels import LevelLike, normalize_level_name

PARALLEL_THRESHOLD = 10
MAX_WORKERS = 8


@dataclass(frozen=True)
class BulkLogRequest:
    """One request in a batch; missing level/context use the batch defaults."""

    message: Any
    level: Optional[LevelLike] = None
    context: Optional[Mapping[str, Any]] = None


@dataclass
class BulkResult:
    """Summary of a dispatched batch."""

    total: int = 0
    processed: int = 0
    failed: int = 0
    parallel: bool = False
    errors: List[str] = field(default_factory=list)


RequestLike = Union[BulkLogRequest, Mapping[str, Any], str]


def to_request(item: RequestLike) -> BulkLogRequest:
    if isinstance(item, BulkLogRequest):
        return item
    if isinstance(item, str):
        return BulkLogRequest(message=item)
    if isinstance(item, Mapping):
        if "message" not in item:
            raise ValueError("bulk log request has no 'message'")
        return BulkLogRequest(
            message=item["message"],
            level=item.get("level"),
            context=item.get("context"),
        )
    raise TypeError(f"unsupported bulk log request: {type(item).__name__}")


class BulkDispatcher:
    """Writes batches through the engine's single-entry path."""

    def __init__(
        self,
        store: ConfigurationStore,
        emit: Callable[..., None],
        max_workers: int = MAX_WORKERS,
        parallel_threshold: int = PARALLEL_THRESHOLD,
    ):
        self.store = store
        self._emit = emit
        self.max_workers = max_workers
        self.parallel_threshold = parallel_threshold

    def dispatch(
        self,
        entries: Sequence[RequestLike],
        default_level: LevelLike = "INFO",
        default_context: Optional[Mapping[str, Any]] = None,
        parallel: bool = False,
    ) -> BulkResult:
        items = list(entries)
        result = BulkResult(total=len(items))
        if not items:
            return result

        default_level = normalize_level_name(default_level)
        call_site = capture_call_site(with_stack=self.store.get().enable_call_stack)

        if parallel and len(items) > self.parallel_threshold:
            result.parallel = True
            workers = max(1, min(self.max_workers, len(items)))
            with ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="aitherlog-bulk"
            ) as pool:
                futures = [
                    pool.submit(self._write_one, item, default_level, default_context, call_site)
                    for item in items
                ]
                for future in as_completed(futures):
                    self._record(result, future.result())
        else:
            for item in items:
                self._record(
                    result, self._write_one(item, default_level, default_context, call_site)
                )

        return result

    def _write_one(
        self,
        item: RequestLike,
        default_level: str,
        default_context: Optional[Mapping[str, Any]],
        call_site: CallSite,
    ) -> Optional[str]:
        try:
            request = to_request(item)
            self._emit(
                request.message,
                level=request.level or default_level,
                context=merge_context(default_context, request.context),
                call_site=call_site,
            )
            return None
        except Exception as e:
            return f"{type(e).__name__}: {e}"

    @staticmethod
    def _record(result: BulkResult, error: Optional[str]) -> None:
        if error is None:
            result.processed += 1
        else:
            result.failed += 1
            result.errors.append(error)
