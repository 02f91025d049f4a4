import json
import threading
import time

import pytest

from signdesk.models.document import (
    Attachment,
    DocumentDraft,
    DocumentStatus,
    DrawnSignature,
    Signer,
    TypedSignature,
)
from signdesk.models.user import Principal
from signdesk.services.document_store import DocumentStore, search_documents
from signdesk.services.storage import MemoryStorage


def _draft(title: str = "Contract", signers: list[str] | None = None, files: list[Attachment] | None = None) -> DocumentDraft:
    return DocumentDraft(
        title=title,
        description=f"{title} description",
        signers=[Signer(email=email) for email in (signers if signers is not None else ["a@x.com", "b@x.com"])],
        files=files or [],
    )


def test_create_assigns_identity_and_persists(store: DocumentStore, slot_storage: MemoryStorage, alice: Principal) -> None:
    document = store.create(alice, _draft(files=[Attachment(name="c.pdf", media_type="application/pdf", content=b"%PDF")]))

    assert document.id
    assert document.owner_email == alice.email
    assert document.shared_with == []
    assert document.status == DocumentStatus.PENDING
    assert store.get(document.id) is document

    stored = json.loads(slot_storage.slots["documents"])
    assert [item["id"] for item in stored] == [document.id]
    assert stored[0]["files"][0]["length"] == 4


def test_create_generates_unique_ids(store: DocumentStore, alice: Principal) -> None:
    ids = {store.create(alice, _draft(f"Doc {index}")).id for index in range(20)}
    assert len(ids) == 20


def test_every_mutation_rewrites_the_whole_collection(
    store: DocumentStore, slot_storage: MemoryStorage, alice: Principal, bob: Principal
) -> None:
    first = store.create(alice, _draft("First"))
    store.create(alice, _draft("Second"))
    store.share(first.id, "c@x.com")
    store.update_status(first.id, DocumentStatus.SIGNED, TypedSignature(name="A"), alice)
    store.delete(first.id, alice)

    assert len(slot_storage.writes) == 5
    stored = json.loads(slot_storage.slots["documents"])
    assert [item["title"] for item in stored] == ["Second"]


def test_signing_scenario(store: DocumentStore, alice: Principal) -> None:
    document = store.create(alice, _draft())
    assert document.status == DocumentStatus.PENDING

    store.update_status(document.id, DocumentStatus.SIGNED, TypedSignature(name="A", style="style1"), alice)

    updated = store.get(document.id)
    assert updated.status == DocumentStatus.SIGNED
    assert updated.signed_at is not None
    assert updated.signer_for("a@x.com").signature == TypedSignature(name="A", style="style1")
    assert updated.signer_for("b@x.com").signature is None
    assert [signer.email for signer in updated.signers] == ["a@x.com", "b@x.com"]
    assert updated.is_completed is False

    store.share(document.id, "c@x.com")
    assert store.list_shared("c@x.com") == [updated]


def test_signed_at_is_stamped_once(store: DocumentStore, alice: Principal) -> None:
    document = store.create(alice, _draft())

    store.update_status(document.id, DocumentStatus.SIGNED, TypedSignature(name="A"), alice)
    first_signed_at = store.get(document.id).signed_at
    time.sleep(0.01)
    store.update_status(document.id, DocumentStatus.SIGNED, TypedSignature(name="A"), alice)

    assert store.get(document.id).signed_at == first_signed_at


def test_update_status_for_non_signer_keeps_signers(store: DocumentStore, alice: Principal) -> None:
    outsider = Principal(id="x", email="z@x.com")
    document = store.create(alice, _draft())

    updated = store.update_status(document.id, DocumentStatus.SIGNED, DrawnSignature(image="data:image/png;base64,AA=="), outsider)

    assert updated.status == DocumentStatus.SIGNED
    assert all(signer.signature is None for signer in updated.signers)


def test_update_status_missing_document_is_noop(store: DocumentStore, slot_storage: MemoryStorage, alice: Principal) -> None:
    assert store.update_status("missing", DocumentStatus.SIGNED, None, alice) is None
    assert slot_storage.writes == []


def test_delete_requires_owner(store: DocumentStore, slot_storage: MemoryStorage, alice: Principal, bob: Principal) -> None:
    document = store.create(alice, _draft())
    writes_before = len(slot_storage.writes)

    assert store.delete(document.id, bob) is False
    assert store.get(document.id) is not None
    assert len(slot_storage.writes) == writes_before

    assert store.delete(document.id, alice) is True
    assert store.get(document.id) is None
    assert store.delete(document.id, alice) is False


def test_share_has_set_semantics(store: DocumentStore, alice: Principal) -> None:
    document = store.create(alice, _draft())

    store.share(document.id, "c@x.com")
    store.share(document.id, "c@x.com")

    assert store.get(document.id).shared_with == ["c@x.com"]
    assert store.share("missing", "c@x.com") is None


def test_owned_and_shared_partition(store: DocumentStore, alice: Principal) -> None:
    document = store.create(alice, _draft(signers=[]))
    store.share(document.id, "b@x.com")

    assert store.list_owned("a@x.com") == [document]
    assert store.list_shared("a@x.com") == []
    assert store.list_shared("b@x.com") == [document]
    assert store.list_owned("b@x.com") == []
    assert store.list_owned("") == []


def test_signers_see_document_as_shared(store: DocumentStore, alice: Principal) -> None:
    document = store.create(alice, _draft(signers=["b@x.com"]))
    assert store.list_shared("b@x.com") == [document]


def test_zero_signer_document_is_completed(store: DocumentStore, alice: Principal) -> None:
    document = store.create(alice, _draft(signers=[]))
    assert document.is_completed is True


def test_load_restores_collection(slot_storage: MemoryStorage, alice: Principal) -> None:
    writer = DocumentStore(slot_storage, write_behind=False)
    created = writer.create(alice, _draft(files=[Attachment(name="a.txt", media_type="text/plain", content=b"hello")]))

    reader = DocumentStore(slot_storage, write_behind=False)
    assert reader.load() == 1

    restored = reader.get(created.id)
    assert restored.files[0].content == b"hello"
    assert restored.files[0].size == 5
    assert restored.owner_email == alice.email


@pytest.mark.parametrize(
    "files",
    [
        [{"name": "a", "media_type": "x", "length": 1, "payload": "!!"}],
        5,
        True,
        "abc",
    ],
)
def test_load_with_corrupt_slot_starts_empty(slot_storage: MemoryStorage, files) -> None:
    slot_storage.slots["documents"] = json.dumps([{"id": "1", "title": "t", "files": files}])
    store = DocumentStore(slot_storage, write_behind=False)

    assert store.load() == 0
    assert store.all() == []


def test_load_with_empty_slot(slot_storage: MemoryStorage) -> None:
    store = DocumentStore(slot_storage, write_behind=False)
    assert store.load() == 0


class _FailingStorage(MemoryStorage):
    def write(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_failed_write_is_logged_not_raised(alice: Principal) -> None:
    store = DocumentStore(_FailingStorage(), write_behind=False)

    document = store.create(alice, _draft())

    assert store.get(document.id) is document
    assert store.flush() is False


class _SlowStorage(MemoryStorage):
    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self.payloads: list[str] = []

    def write(self, key: str, value: str) -> None:
        self.release.wait(timeout=5)
        self.payloads.append(value)
        super().write(key, value)


def test_write_behind_returns_before_persistence(alice: Principal) -> None:
    storage = _SlowStorage()
    store = DocumentStore(storage, write_behind=True)
    try:
        document = store.create(alice, _draft())

        assert store.get(document.id) is document
        assert storage.writes == []
        assert store.last_write is not None and not store.last_write.done()

        storage.release.set()
        assert store.flush(timeout=5) is True
        assert json.loads(storage.slots["documents"])[0]["id"] == document.id
    finally:
        storage.release.set()
        store.close()


def test_write_behind_snapshot_is_taken_at_mutation_time(alice: Principal) -> None:
    storage = _SlowStorage()
    store = DocumentStore(storage, write_behind=True)
    try:
        document = store.create(alice, _draft())
        first_write = store.last_write
        store.share(document.id, "c@x.com")

        storage.release.set()
        store.flush(timeout=5)
        assert first_write.result(timeout=5) is True
        assert len(storage.payloads) == 2
        assert json.loads(storage.payloads[0])[0]["shared_with"] == []
        assert json.loads(storage.payloads[1])[0]["shared_with"] == ["c@x.com"]
        assert json.loads(storage.slots["documents"])[0]["shared_with"] == ["c@x.com"]
    finally:
        storage.release.set()
        store.close()


def test_search_documents_filters_and_sorts(store: DocumentStore, alice: Principal) -> None:
    older = store.create(alice, DocumentDraft(title="Lease agreement", description="Flat 4B"))
    time.sleep(0.01)
    newer = store.create(alice, DocumentDraft(title="Offer letter", description="Lease bonus"))
    store.update_status(older.id, DocumentStatus.SIGNED, None, alice)

    assert search_documents(store.all(), "lease") == [newer, older]
    assert search_documents(store.all(), "LEASE", DocumentStatus.SIGNED) == [older]
    assert search_documents(store.all(), "", DocumentStatus.EXPIRED) == []


@pytest.mark.parametrize("term", [None, "", "   "])
def test_search_documents_without_term_returns_everything(store: DocumentStore, alice: Principal, term) -> None:
    store.create(alice, _draft("One"))
    store.create(alice, _draft("Two"))
    assert len(search_documents(store.all(), term)) == 2
