"""Document persistence port on top of the Django ORM.

Offers and orders are written as whole documents: header plus lines in one
transaction, guarded by an integer ``version`` column. ``save`` only succeeds
when the stored version still equals the version the caller loaded; every
successful save bumps it by one.

Hosting code can react to committed writes with ``subscribe``.
"""

import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction
from django.db.models import F
from django.dispatch import Signal

from .exceptions import DocumentNotFound, PersistenceError, StaleWriteError

logger = logging.getLogger(__name__)

document_saved = Signal()
document_deleted = Signal()

_subscriptions = []


def load(model, pk, *, for_update=False, queryset=None):
    """Return the document ``pk`` of ``model`` or raise DocumentNotFound."""
    qs = queryset if queryset is not None else model._default_manager.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=pk)
    except model.DoesNotExist:
        raise DocumentNotFound(f"{model._meta.verbose_name.capitalize()} {pk} not found.")
    except DatabaseError as exc:
        logger.error("Loading %s %s failed", model.__name__, pk, exc_info=True)
        raise PersistenceError(str(exc)) from exc


def save(instance, expected_version=None):
    """Persist ``instance`` in full and bump its version.

    New instances are inserted with version 1. Existing ones are written
    with a conditional update on ``expected_version`` (defaults to the
    version the instance was loaded with).
    """
    model = type(instance)
    try:
        if instance.pk is None:
            instance.version = 1
            instance.save()
        else:
            expected = instance.version if expected_version is None else expected_version
            values = {
                f.attname: getattr(instance, f.attname)
                for f in model._meta.concrete_fields
                if not f.primary_key and f.attname != "version"
            }
            for f in model._meta.concrete_fields:
                if getattr(f, "auto_now", False):
                    f.pre_save(instance, add=False)
                    values[f.attname] = getattr(instance, f.attname)
            updated = model._default_manager.filter(pk=instance.pk, version=expected).update(
                version=F("version") + 1, **values
            )
            if not updated:
                logger.warning("Stale write rejected for %s %s (expected v%s)", model.__name__, instance.pk, expected)
                raise StaleWriteError()
            instance.version = expected + 1
    except DatabaseError as exc:
        logger.error("Saving %s %s failed", model.__name__, instance.pk, exc_info=True)
        raise PersistenceError(str(exc)) from exc

    transaction.on_commit(lambda: document_saved.send(sender=model, document=instance, action="saved"))
    return instance


def delete(instance):
    model = type(instance)
    pk = instance.pk
    try:
        instance.delete()
    except DatabaseError as exc:
        logger.error("Deleting %s %s failed", model.__name__, pk, exc_info=True)
        raise PersistenceError(str(exc)) from exc
    instance.pk = pk
    transaction.on_commit(lambda: document_deleted.send(sender=model, document=instance, action="deleted"))


def subscribe(scope, callback):
    """Call ``callback(document, action)`` after every committed write in ``scope``.

    ``scope`` is the app label of the document collection (``"offers"`` or
    ``"orders"``). Returns a function that removes the subscription.
    """

    def receiver(sender, document, action, **kwargs):
        if sender._meta.app_label == scope:
            callback(document, action)

    document_saved.connect(receiver, weak=False)
    document_deleted.connect(receiver, weak=False)
    _subscriptions.append(receiver)

    def unsubscribe():
        document_saved.disconnect(receiver)
        document_deleted.disconnect(receiver)
        if receiver in _subscriptions:
            _subscriptions.remove(receiver)

    return unsubscribe


@contextmanager
def document_transaction(description):
    """``transaction.atomic`` that reports storage failures as PersistenceError."""
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.error("%s failed", description, exc_info=True)
        raise PersistenceError(str(exc)) from exc
