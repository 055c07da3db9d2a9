from typing import Optional, List, Dict, Any
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pydantic import ValidationError as PydanticValidationError
from ..core.config import settings
from ..core.errors import ImageCompressionError, ValidationError
from ..core.models import (
    BatchRequest,
    BatchResult,
    CompressionConfig,
    FailedFile,
    FileInput,
    UploadedFile,
)
from ..imaging.probe import decode_base64, probe
from ..imaging.normalize import normalize
from ..imaging.planner import plan
from ..imaging.encoder import encode, canonical_format, content_type_for
from ..aws.clients import s3 as s3_client_factory
from ..aws.storage import build_key, object_url, put_object

logger = logging.getLogger(__name__)

ABORT = "abort"
ISOLATE = "isolate"
FAILURE_POLICIES = {ABORT, ISOLATE}

NO_FILES_MESSAGE = "No files provided"


def parse_request(payload: Any) -> BatchRequest:
    """Validate the request envelope before any file is touched."""
    if not isinstance(payload, dict):
        raise ValidationError(NO_FILES_MESSAGE)
    files = payload.get("files")
    if not files or not isinstance(files, list):
        raise ValidationError(NO_FILES_MESSAGE)

    parsed: List[FileInput] = []
    for index, entry in enumerate(files):
        try:
            parsed.append(FileInput.model_validate(entry))
        except PydanticValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'file'}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(f"Invalid file entry at index {index}: {errors}") from e

    username = payload.get("username")
    return BatchRequest(username=None if username is None else str(username), files=parsed)


def resolve_config(
    config: Optional[CompressionConfig],
    default: Optional[CompressionConfig] = None,
) -> CompressionConfig:
    """Merge a caller's (possibly partial) config over `default`, field by field.

    Only fields the caller actually sent override the default; `resize`
    is merged one level deeper so `{"width": 300}` keeps the default
    height. An explicit `resize: null` disables resizing.
    """
    base = default or CompressionConfig()
    if config is None:
        return base

    merged = base.model_dump()
    for name, value in config.model_dump(exclude_unset=True).items():
        if name == "resize" and value is not None and merged.get("resize") is not None:
            merged["resize"] = {**merged["resize"], **value}
        else:
            merged[name] = value
    return CompressionConfig.model_validate(merged)


def process_file(
    file: FileInput,
    *,
    username: Optional[str] = None,
    client: Any = None,
) -> UploadedFile:
    """Run one file through decode, probe, normalize, plan, encode and upload."""
    config = resolve_config(file.config)
    output_format = canonical_format(config.format)

    buffer = decode_base64(file.raw_base64)
    probed = probe(buffer)
    buffer = normalize(buffer, probed.format, config.quality)
    target = plan(probed, config.resize)
    compressed = encode(buffer, target, output_format, config.quality)

    key = build_key(username, file.file_name)
    put_object(
        key=key,
        body=compressed,
        content_type=file.mime_type or content_type_for(output_format),
        client=client,
    )
    logger.info(
        "Uploaded %s as %s (%s %dx%d -> %s%s, %d bytes)",
        file.file_name or "<unnamed>",
        key,
        probed.format,
        probed.width,
        probed.height,
        output_format,
        f" within {target.width}x{target.height}" if target else "",
        len(compressed),
    )
    return UploadedFile(file_name=file.file_name, key=key, url=object_url(key))


def process_batch(
    request: BatchRequest,
    *,
    max_workers: Optional[int] = None,
    failure_policy: Optional[str] = None,
) -> BatchResult:
    """Process every file of the batch on a bounded worker pool.

    Results land in a slot per input index, so `uploaded` follows input
    order whatever order the workers finish in.

    Under the `abort` policy the first failure wins: tasks that have not
    started skip their work and the error is re-raised once in-flight
    tasks finish. Objects already written stay in the bucket and are not
    reported. Under `isolate` each domain error is recorded per file and
    the rest of the batch carries on.
    """
    policy = failure_policy or settings.failure_policy
    if policy not in FAILURE_POLICIES:
        raise ValueError(f"unknown failure policy: {policy!r}")
    workers = max(1, min(max_workers or settings.max_workers, len(request.files)))

    client = s3_client_factory()
    aborted = threading.Event()
    slots: List[Optional[UploadedFile]] = [None] * len(request.files)
    failures: Dict[int, FailedFile] = {}

    def _run(file: FileInput) -> Optional[UploadedFile]:
        if aborted.is_set():
            return None
        try:
            return process_file(file, username=request.username, client=client)
        except Exception:
            if policy == ABORT:
                aborted.set()
            raise

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_run, f): i for i, f in enumerate(request.files)}
        for future in as_completed(futures):
            index = futures[future]
            try:
                slots[index] = future.result()
            except ImageCompressionError as e:
                if policy == ABORT:
                    _cancel_pending(futures)
                    logger.exception("Batch aborted at file %d (%s)", index, request.files[index].file_name)
                    raise
                logger.warning("File %d (%s) failed: %s", index, request.files[index].file_name, e)
                failures[index] = FailedFile(index=index, file_name=request.files[index].file_name, error=str(e))
            except Exception:
                _cancel_pending(futures)
                logger.exception("Batch aborted at file %d (%s)", index, request.files[index].file_name)
                raise

    uploaded = [s for s in slots if s is not None]
    if policy == ISOLATE:
        return BatchResult(uploaded=uploaded, failed=[failures[i] for i in sorted(failures)])
    return BatchResult(uploaded=uploaded)


def _cancel_pending(futures) -> None:
    for future in futures:
        future.cancel()
