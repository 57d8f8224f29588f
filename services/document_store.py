"""
Document Store - get/set/update/query over JSON documents kept in SQL.

Every write goes through `atomic_update`, a read-modify-write guarded by the
`version` column of ProgressDocument. A concurrent writer that commits first
makes our UPDATE match zero rows; SQLAlchemy raises StaleDataError and the
whole read-modify-write is replayed against the fresh document. Concurrent
creation of the same key is caught by the unique constraint and replayed the
same way.
"""

import copy
import logging
from typing import Callable, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from models import db
from models.progress_document import ProgressDocument
from services.errors import InvalidArgument, NotFound, ProgressError, StorageUnavailable

logger = logging.getLogger(__name__)

DEFAULT_WRITE_RETRIES = 3


class Increment:
    """Field value for `DocumentStore.update` that adds to the stored number"""

    def __init__(self, amount):
        if not isinstance(amount, (int, float)) or isinstance(amount, bool):
            raise InvalidArgument(f"Increment amount must be a number, got: {amount!r}")
        self.amount = amount

    def __repr__(self):
        return f'Increment({self.amount})'


def _deep_merge(base: dict, overlay: dict) -> dict:
    merged = dict(base)
    for field, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(field), dict):
            merged[field] = _deep_merge(merged[field], value)
        else:
            merged[field] = copy.deepcopy(value)
    return merged


def _apply_field(document: dict, path: str, value) -> None:
    """Set (or increment) a dotted path such as 'dailyQuests.progress.wordsLearned'"""
    parts = path.split('.')
    target = document
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child

    leaf = parts[-1]
    if isinstance(value, Increment):
        target[leaf] = (target.get(leaf) or 0) + value.amount
    else:
        target[leaf] = copy.deepcopy(value)


class DocumentStore:
    """
    Storage collaborator for the progress core.

    Documents are plain dicts. Callers never receive the ORM row, only
    deep copies of its JSON payload, so no state is shared between requests.
    """

    def __init__(self, write_retries: Optional[int] = None):
        self._write_retries = write_retries

    @property
    def write_retries(self) -> int:
        if self._write_retries is not None:
            return self._write_retries
        return current_app.config.get('PROGRESS_WRITE_RETRIES', DEFAULT_WRITE_RETRIES)

    def _load(self, collection: str, key: str) -> Optional[ProgressDocument]:
        # populate_existing: never trust a row cached in the identity map
        return ProgressDocument.query.filter_by(
            collection=collection,
            doc_key=key
        ).populate_existing().first()

    def get(self, collection: str, key: str) -> Optional[dict]:
        """
        Read one document.

        Returns:
            A copy of the document, or None if absent

        Raises:
            StorageUnavailable: If the database read fails
        """
        try:
            document = self._load(collection, key)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to read {collection}/{key}: {str(e)}", exc_info=True)
            raise StorageUnavailable(f"Failed to read {collection}/{key}") from e

        return copy.deepcopy(document.data) if document else None

    def get_or_create(self, collection: str, key: str, default: Callable[[], dict]) -> dict:
        """
        Read a document, creating it from `default()` if absent.

        If another writer creates the same key first, their document wins and
        is returned.
        """
        existing = self.get(collection, key)
        if existing is not None:
            return existing

        data = default()
        try:
            db.session.add(ProgressDocument(collection=collection, doc_key=key, data=data))
            db.session.commit()
            logger.info(f"Created document {collection}/{key}")
            return copy.deepcopy(data)
        except IntegrityError:
            db.session.rollback()
            logger.debug(f"Document {collection}/{key} created concurrently, re-reading")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to create {collection}/{key}: {str(e)}", exc_info=True)
            raise StorageUnavailable(f"Failed to create {collection}/{key}") from e

        existing = self.get(collection, key)
        if existing is None:
            raise StorageUnavailable(f"Document {collection}/{key} vanished after concurrent create")
        return existing

    def atomic_update(
        self,
        collection: str,
        key: str,
        mutate: Callable[[dict], dict],
        default: Optional[Callable[[], dict]] = None
    ) -> dict:
        """
        Apply `mutate` to the stored document as one atomic read-modify-write.

        Args:
            collection: Collection name
            key: Document key
            mutate: Receives a private copy of the document, returns the new document.
                    May be called more than once if writes conflict.
            default: Builds the document when absent. Without it, an absent
                     document raises NotFound.

        Returns:
            A copy of the document as committed

        Raises:
            NotFound: If the document is absent and no default is given
            StorageUnavailable: If the database fails or conflicts persist
        """
        retries = self.write_retries

        for attempt in range(1, retries + 1):
            try:
                document = self._load(collection, key)
                if document is None:
                    if default is None:
                        raise NotFound(f"Document {collection}/{key} does not exist")
                    current = default()
                    document = ProgressDocument(collection=collection, doc_key=key, data={})
                    db.session.add(document)
                else:
                    current = copy.deepcopy(document.data)

                updated = mutate(current)
                document.data = updated
                db.session.commit()
                return copy.deepcopy(updated)

            except (StaleDataError, IntegrityError) as e:
                db.session.rollback()
                logger.warning(
                    f"Write conflict on {collection}/{key} "
                    f"(attempt {attempt}/{retries}): {str(e)}"
                )
            except ProgressError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Failed to update {collection}/{key}: {str(e)}", exc_info=True)
                raise StorageUnavailable(f"Failed to update {collection}/{key}") from e
            except Exception:
                db.session.rollback()
                raise

        logger.error(f"Giving up on {collection}/{key} after {retries} conflicting writes")
        raise StorageUnavailable(
            f"Could not update {collection}/{key}: {retries} concurrent write conflicts"
        )

    def set(self, collection: str, key: str, document: dict, merge: bool = False) -> dict:
        """Replace a document, or deep-merge into it when `merge` is True"""
        def _mutate(current):
            if merge:
                return _deep_merge(current, document)
            return copy.deepcopy(document)

        return self.atomic_update(collection, key, _mutate, default=dict)

    def update(self, collection: str, key: str, fields: dict) -> dict:
        """
        Update fields of an existing document.

        Keys may be dotted paths into nested objects. Increment values are
        added to the stored number inside the same atomic write.

        Example:
            >>> store.update('userProgress', 'u-1', {'gems': Increment(5)})
        """
        if not fields:
            raise InvalidArgument("update requires at least one field")

        def _mutate(current):
            for path, value in fields.items():
                _apply_field(current, path, value)
            return current

        return self.atomic_update(collection, key, _mutate)

    def query(self, collection: str, filters: dict) -> list:
        """
        Documents of `collection` whose top-level fields equal the given values.

        Only string values are supported; ids in this core are opaque strings.
        """
        for field, value in filters.items():
            if not isinstance(value, str):
                raise InvalidArgument(f"query filter '{field}' must be a string, got: {value!r}")

        try:
            q = ProgressDocument.query.filter_by(collection=collection)
            for field, value in filters.items():
                q = q.filter(ProgressDocument.data[field].as_string() == value)
            documents = q.order_by(ProgressDocument.id).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to query {collection} by {filters}: {str(e)}", exc_info=True)
            raise StorageUnavailable(f"Failed to query {collection}") from e

        return [copy.deepcopy(document.data) for document in documents]
