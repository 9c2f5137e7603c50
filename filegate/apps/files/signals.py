"""Signal handlers for files app."""

from django.contrib.auth import get_user_model
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from filegate.apps.files.logic.file_operations import delete_all_user_files


@receiver(pre_delete, sender=get_user_model())
def delete_files_of_deleted_user(
    sender: type,
    instance: object,
    **kwargs: object,
) -> None:
    """Tear down a user's files before the user row is deleted.

    Runs inside the user deletion transaction, before the cascade
    removes the file rows. The objects they point at are removed from
    storage only once that transaction commits (best effort), so a
    rolled back deletion keeps every file intact.

    Args:
        sender: The user model class.
        instance: The user being deleted.
        **kwargs: Additional signal arguments.
    """
    delete_all_user_files(instance.pk)  # type: ignore[attr-defined]
