"""notekeeper: personal notes from the command line, with public sharing."""

__version__ = "0.1.0"


def get_shared_note(note_id: int, settings=None):
    """Fetch a published note: the one-liner for scripts and notebooks.

    No login is needed: shared notes are readable by anyone holding the
    link. Configuration comes from ``NOTEKEEPER_*`` environment variables
    unless *settings* is given.

    Args:
        note_id:  Identifier from the share link (``…/shared/<note_id>``).
        settings: Optional :class:`notekeeper.config.Settings`.

    Returns:
        A :class:`notekeeper.models.PublicNote`.

    Raises:
        NotFoundError: If the note does not exist or is not public.
        TransportError: If the server cannot be reached.

    Example::

        from notekeeper import get_shared_note

        note = get_shared_note(42)
        print(note.title, "by", note.owner_username)
    """
    import asyncio

    from .client import Client

    async def _fetch():
        async with Client(settings) as client:
            return await client.public.fetch_shared(note_id)

    return asyncio.run(_fetch())
