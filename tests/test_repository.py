import pytest
from sqlalchemy.exc import IntegrityError

from codeplugs import repository
from codeplugs.exceptions import NotFoundError, ValidationError
from codeplugs.models.enums import ContactType, Protocol
from codeplugs.models.records import Channel, Contact, DirectoryContact
from codeplugs.repository import session_scope


def test_soft_delete_and_resurrection(engine):
    repository.upsert_directory(engine, [DirectoryContact(dmr_id=666, callsign="OLD", name="Old Name")])
    with session_scope(engine) as session:
        assert repository.soft_delete_directory(session, [666]) == 1
    with session_scope(engine) as session:
        assert repository.list_directory(session) == []
        assert len(repository.list_directory(session, include_deleted=True)) == 1

    repository.upsert_directory(engine, [DirectoryContact(dmr_id=666, callsign="NEW", name="New Name", city="X")])
    with session_scope(engine) as session:
        rows = repository.list_directory(session, dmr_ids=[666], include_deleted=True)
    assert len(rows) == 1
    assert (rows[0].callsign, rows[0].name, rows[0].city, rows[0].deleted_at) == ("NEW", "New Name", "X", None)


def test_directory_batches_report_progress(engine):
    batches = []
    contacts = [DirectoryContact(dmr_id=i, callsign=f"C{i}") for i in range(1, 6)]
    assert repository.upsert_directory(engine, contacts, batch_size=2, on_batch=batches.append) == 5
    assert batches == [2, 2, 1]


def test_contact_uniqueness_is_enforced(engine):
    with session_scope(engine) as session:
        repository.save_contact(session, Contact(name="TG 91", dmr_id=91))
    with pytest.raises(IntegrityError):
        with session_scope(engine) as session:
            repository.save_contact(session, Contact(name="Dup", dmr_id=91))
    with session_scope(engine) as session:
        repository.save_contact(session, Contact(name="Private 91", dmr_id=91, call_type=ContactType.PRIVATE))
        assert len(repository.list_contacts(session)) == 2


def test_upsert_contacts_updates_names(engine):
    with session_scope(engine) as session:
        repository.upsert_contacts(session, [Contact(name="Old", dmr_id=3100)])
        repository.upsert_contacts(session, [Contact(name="USA", dmr_id=3100)])
        assert [c.name for c in repository.list_contacts(session)] == ["USA"]


def test_validation_rejects_before_persisting(engine):
    bad = Channel(name="DMR", rx_frequency=442.0, protocol=Protocol.DMR, color_code=0)
    with pytest.raises(ValidationError):
        with session_scope(engine) as session:
            repository.insert_channels(session, [Channel(name="ok", rx_frequency=146.52), bad])
    with session_scope(engine) as session:
        assert repository.list_channels(session) == []
    with pytest.raises(ValidationError):
        Contact(name="zero", dmr_id=0).validate()


def test_channels_keep_sort_order(engine):
    with session_scope(engine) as session:
        repository.insert_channels(session, [Channel(name="A", rx_frequency=1.0)])
        repository.insert_channels(session, [Channel(name="B", rx_frequency=2.0, skip=True)])
        assert [c.sort_order for c in repository.list_channels(session)] == [1, 2]
        assert [c.name for c in repository.list_channels(session, include_skipped=False)] == ["A"]
        assert repository.channel_keys(session) == {("A", 1.0), ("B", 2.0)}


def test_contact_lists(engine):
    with session_scope(engine) as session:
        list_id = repository.create_contact_list(session, "friends", [3, 1, 2, 2], "pals")
        repository.create_contact_list(session, "friends", [5])
        assert repository.contact_list_ids(session, "friends") == {5}
        lists = repository.list_contact_lists(session)
        assert [(r["id"], r["name"], r["description"], r["count"]) for r in lists] == [(list_id, "friends", "pals", 1)]
        with pytest.raises(NotFoundError):
            repository.contact_list_ids(session, "strangers")
