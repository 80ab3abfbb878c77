# src/jstrack/core/storage.py
"""
Document store for the knowledge base JSON file.

All sync - local file I/O plus optional git sync of the data directory.
Failures are soft: load() returns None and save() returns False, both after
logging, so the CLI can report "could not load/save" instead of crashing.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from jstrack.core.models import Document, document_to_dict
from jstrack.core.normalizer import normalize

logger = logging.getLogger(__name__)

CommitContext = Union[Dict[str, Any], Callable[[Any], Dict[str, Any]], None]


def commit_message(context: Optional[Dict[str, Any]]) -> str:
    """Commit message for a save, based on what the caller changed."""
    context = context or {}
    kind = context.get('type')
    if kind == "apply":
        return f"feat: {context.get('section')} → {context.get('project')}"
    if kind == "unapply":
        return f"fix: remove {context.get('section')}"
    return "chore: update knowledge base"


class DocumentStore:
    """Loads and saves the canonical document."""

    def __init__(self, data_dir: Union[str, Path], data_file: str = "knowledge-base.json",
                 backup_files: Optional[List[str]] = None, sync=None):
        self.data_dir = Path(data_dir)
        self.data_file = data_file
        self.backup_files = list(backup_files or [data_file])
        self.sync = sync

    @classmethod
    def from_settings(cls, settings) -> 'DocumentStore':
        sync = None
        if settings.sync:
            from jstrack.integrations.git import DataRepoSync
            sync = DataRepoSync(settings.data_dir, settings.knowledge_repo)
        return cls(
            data_dir=settings.data_dir,
            data_file=settings.data_file,
            backup_files=settings.backup_files,
            sync=sync
        )

    @property
    def target_path(self) -> Path:
        return self.data_dir / self.data_file

    def find_data_file(self) -> Path:
        """First existing candidate file; creates an empty document if none exist."""
        for name in self.backup_files:
            candidate = self.data_dir / name
            if candidate.exists():
                return candidate

        self.data_dir.mkdir(parents=True, exist_ok=True)
        main_file = self.target_path
        if not main_file.exists():
            logger.info(f"No knowledge base found, creating {main_file}")
            with open(main_file, 'w', encoding='utf-8') as f:
                json.dump({}, f, indent=2)
        return main_file

    def load(self) -> Optional[Document]:
        """Sync, read and normalize the knowledge base. None on failure."""
        if self.sync is not None:
            self.sync.ensure_repo()

        try:
            data_file = self.find_data_file()
            with open(data_file, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            document = normalize(raw)
            logger.debug(f"Loaded {len(document)} articles from {data_file}")
            return document
        except (OSError, UnicodeDecodeError, json.JSONDecodeError,
                TypeError, ValueError, AttributeError) as e:
            logger.error(f"Failed to load knowledge base from {self.data_dir}: {e}")
            return None

    def save(self, document: Document, context: Optional[Dict[str, Any]] = None) -> bool:
        """
        Overwrite the knowledge base with `document`.

        The file is written to a temporary sibling, re-read to check the key
        count and only then moved into place. Never raises.

        Args:
            document: Canonical document to persist
            context: What changed, used for the git commit message

        Returns:
            True when the file was written and verified
        """
        target = self.target_path
        tmp_name = None

        try:
            payload = document_to_dict(document)
            self.data_dir.mkdir(parents=True, exist_ok=True)

            with tempfile.NamedTemporaryFile(
                    'w', encoding='utf-8', dir=self.data_dir,
                    prefix=f".{self.data_file}.", suffix=".tmp", delete=False
            ) as f:
                tmp_name = f.name
                json.dump(payload, f, indent=2, ensure_ascii=False)

            with open(tmp_name, 'r', encoding='utf-8') as f:
                saved = json.load(f)
            if len(saved) != len(payload):
                logger.error(
                    f"Save verification failed for {target}: "
                    f"expected {len(payload)} keys, found {len(saved)}"
                )
                return False

            os.replace(tmp_name, target)
            tmp_name = None

            logger.info(f"Saved {len(saved)} articles to {target} ({target.stat().st_size} bytes)")

        except Exception as e:
            logger.error(f"Failed to save knowledge base to {target}: {e}")
            return False
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        if self.sync is not None:
            self.sync.commit_and_push(self.data_file, commit_message(context))

        return True

    def update(self, mutator: Callable[[Document], Any], context: CommitContext = None) -> Any:
        """
        Load, mutate and save in one step.

        A result reporting failure (False, or success == False) is returned
        without saving. Returns None when the document cannot be loaded or
        saved.
        """
        document = self.load()
        if document is None:
            logger.error("Refusing to update: knowledge base could not be loaded")
            return None

        result = mutator(document)
        if result is False or getattr(result, 'success', True) is False:
            return result

        ctx = context(result) if callable(context) else context
        if not self.save(document, ctx):
            return None
        return result
