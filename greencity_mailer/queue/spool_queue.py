"""Spool-directory based queue, one directory per queue name."""
import json
import os
import re
import time
from pathlib import Path
from typing import Optional, List

from greencity_mailer import settings
from greencity_mailer.logging_conf import logger
from greencity_mailer.queue.models import QueueItem

READY = ".evt"
RETRY = ".retry"
CLAIMED = ".work"


class SpoolQueue:
    """
    A minimal spool-based queue.

    Ready messages are `.evt` files, claimed ones `.work`, failed ones `.retry`.
    Messages failing `max_retries` times are moved to `<base>/dead/<queue>/`.
    """

    def __init__(
        self,
        name: str,
        base_dir: Optional[Path] = None,
        retry_seconds: Optional[int] = None,
        max_retries: Optional[int] = None,
    ):
        self.name = name
        self.base_dir: Path = Path(base_dir or settings.SPOOL_BASE_DIR)
        self.queue_dir: Path = self.base_dir / self._safe_id(name)
        self.dead_dir: Path = self.base_dir / "dead" / self._safe_id(name)
        self.retry_seconds: int = settings.SPOOL_RETRY_SECONDS if retry_seconds is None else retry_seconds
        self.max_retries: int = max_retries or settings.MAX_RETRIES

        # Ensure directories exist
        self.queue_dir.mkdir(parents=True, exist_ok=True)
        self.dead_dir.mkdir(parents=True, exist_ok=True)

    def enqueue(self, item: QueueItem) -> bool:
        """Enqueue an item as a JSON file named after its message ID. Returns False for duplicates."""
        stem = self._safe_id(item.message_id)
        path = self.queue_dir / f"{stem}{READY}"
        try:
            if self._is_known(stem):
                raise FileExistsError(stem)
            # Exclusive create to naturally deduplicate
            with open(path, "x", encoding="utf-8") as f:
                json.dump(item.to_record(), f)
        except FileExistsError:
            logger.debug(
                f"Spool item already present {self.name}:{item.message_id}",
                extra={"queue": self.name, "message_id": item.message_id}
            )
            return False
        except Exception as e:
            logger.error(f"Failed to spool enqueue on {self.name}: {e}", exc_info=True)
            raise

        logger.info(
            f"Spool enqueued {self.name}:{item.message_id}",
            extra={"queue": self.name, "message_id": item.message_id}
        )
        return True

    def dequeue(self) -> Optional[QueueItem]:
        """Return the next item by scanning for `.evt` or eligible `.retry` files."""
        batch = self.dequeue_batch(max_items=1)
        return batch[0] if batch else None

    def dequeue_batch(self, max_items: int = 10) -> List[QueueItem]:
        """Claim up to max_items from the queue, ready files first, then eligible retries."""
        candidates = self._list_files(READY)
        candidates += [p for p in self._list_files(RETRY) if self._is_retry_eligible(p)]

        items = []
        for file_path in candidates:
            if len(items) >= max_items:
                break
            item = self._claim_file(file_path)
            if item is not None:
                items.append(item)
        return items

    def mark_processed(self, item: QueueItem) -> None:
        """Acknowledge an item by deleting its file."""
        if item.path is None:
            return
        try:
            item.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete spool file {item.path}: {e}")
        item.path = None

    def mark_failed(self, item: QueueItem, error: str) -> None:
        """Record a failed attempt; schedule a retry or move the item to the dead-letter directory."""
        if item.path is None:
            return
        item.attempts += 1
        item.last_error = error[:500]

        if item.attempts >= self.max_retries:
            target = self.dead_dir / f"{self._safe_id(item.message_id)}.json"
            self._write(target, item)
            item.path.unlink(missing_ok=True)
            item.path = None
            logger.warning(
                f"Spool dead-lettered {self.name}:{item.message_id} after {item.attempts} attempts: {error}",
                extra={"queue": self.name, "message_id": item.message_id}
            )
            return

        retry_path = item.path.with_suffix(RETRY)
        self._write(retry_path, item)
        if retry_path != item.path:
            item.path.unlink(missing_ok=True)
        item.path = None
        logger.info(
            f"Spool mark_failed; will retry in ~{self.retry_seconds}s: {self.name}:{item.message_id}",
            extra={"queue": self.name, "message_id": item.message_id}
        )

    def recover_claimed(self) -> int:
        """
        Hand items left claimed by a crashed worker back to the queue.

        The interrupted run counts as a failed attempt, so a message that keeps
        killing the worker ends up dead-lettered.
        """
        count = 0
        for file_path in self._list_files(CLAIMED):
            item = self._load(file_path)
            if item is None:
                continue
            self.mark_failed(item, "worker stopped before acknowledging")
            count += 1
        if count:
            logger.warning(f"Recovered {count} claimed items on {self.name}")
        return count

    def size(self) -> int:
        """Approximate number of queued files."""
        return len(self._list_files(READY)) + len(self._list_files(RETRY))

    def dead_letters(self) -> List[QueueItem]:
        """Items that exhausted their retries."""
        items = []
        for file_path in sorted(self.dead_dir.glob("*.json")):
            with open(file_path, "r", encoding="utf-8") as f:
                items.append(QueueItem.from_record(json.load(f), path=file_path))
        return items

    def _safe_id(self, value: str) -> str:
        """Make a safe filename from an ID."""
        return re.sub(r"[^A-Za-z0-9._-]", "_", value)[:200]

    def _list_files(self, suffix: str) -> List[Path]:
        """List files with a given suffix, oldest first."""
        try:
            files = [p for p in self.queue_dir.iterdir() if p.is_file() and p.suffix == suffix]
        except FileNotFoundError:
            return []
        mtimes = {}
        for p in files:
            try:
                mtimes[p] = p.stat().st_mtime
            except FileNotFoundError:
                continue
        return sorted(mtimes, key=mtimes.get)

    def _is_retry_eligible(self, path: Path) -> bool:
        """Check if a retry file is old enough to retry."""
        try:
            age = time.time() - path.stat().st_mtime
            return age >= self.retry_seconds
        except FileNotFoundError:
            return False

    def _claim_file(self, file_path: Path) -> Optional[QueueItem]:
        """Rename a file to `.work` and load it. Returns None if another consumer got it first."""
        claimed = file_path.with_suffix(CLAIMED)
        try:
            os.replace(file_path, claimed)
        except FileNotFoundError:
            return None

        return self._load(claimed)

    def _load(self, path: Path) -> Optional[QueueItem]:
        """Read a claimed file. Corrupt files are set aside in the dead-letter directory."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
            return QueueItem.from_record(record, path=path)
        except FileNotFoundError:
            return None
        except (ValueError, KeyError) as e:
            # Unreadable files can never succeed
            logger.error(f"Corrupt spool file {path}: {e}")
            os.replace(path, self.dead_dir / f"{path.stem}.corrupt")
            return None

    def _is_known(self, stem: str) -> bool:
        """Whether a message with this stem is claimed, awaiting retry or dead-lettered."""
        return (
            (self.queue_dir / f"{stem}{CLAIMED}").exists()
            or (self.queue_dir / f"{stem}{RETRY}").exists()
            or (self.dead_dir / f"{stem}.json").exists()
        )

    def _write(self, target: Path, item: QueueItem) -> None:
        """Atomically write an item record and stamp its mtime with now."""
        tmp = target.with_suffix(target.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(item.to_record(), f)
        os.replace(tmp, target)
        now = time.time()
        os.utime(target, (now, now))
