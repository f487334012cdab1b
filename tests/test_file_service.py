"""Tests for the file service orchestration."""

import asyncio

import pytest

from conftest import as_stream
from droplite.exceptions import NotFoundError, StorageFault, ValidationError
from droplite.services.blob_store import BlobStore
from droplite.services.file_service import FileService
from droplite.services.metadata_store import InMemoryMetadataStore
from droplite.services.validator import FileValidator

pytestmark = pytest.mark.asyncio

MAX_SIZE = 10 * 1024 * 1024


async def store(service, filename, data=b'hello', content_type='text/plain'):
    return await service.store_file(filename, content_type, len(data), as_stream(data))


async def download(service, file_id):
    record, reader = await service.open_for_download(file_id)
    return record, b''.join([chunk async for chunk in reader])


class FailingMetadataStore(InMemoryMetadataStore):
    async def insert(self, record):
        raise StorageFault('database unavailable')


class UndeletableBlobStore(BlobStore):
    async def delete(self, stored_name):
        raise StorageFault('permission denied')


@pytest.mark.parametrize('filename', ['notes.txt', 'photo.JPG', 'pic.jpeg', 'img.png', 'data.json'])
async def test_store_allowed_file(file_service, filename):
    record = await store(file_service, filename)

    assert record.id is not None
    assert record.original_name == filename
    assert record.size_bytes == 5
    assert record.content_type == 'text/plain'
    assert record.storage_path == str(file_service.blob_store.root / record.stored_name)
    assert record.created_at is not None


async def test_store_sanitizes_original_name(file_service):
    record = await store(file_service, '../../etc/passwd.txt')
    assert record.original_name == 'passwd.txt'
    assert '/' not in record.stored_name


@pytest.mark.parametrize('filename', ['run.exe', 'page.html', 'noext', '', None])
async def test_store_rejects_disallowed_type(file_service, filename, storage_root):
    with pytest.raises(ValidationError) as excinfo:
        await store(file_service, filename)
    assert 'Allowed types: jpeg, jpg, json, png, txt' in str(excinfo.value)
    assert list(storage_root.iterdir()) == []
    assert await file_service.list_files() == []


@pytest.mark.parametrize('filename', ['notes.txt', 'photo.png'])
async def test_store_rejects_oversized(file_service, filename):
    with pytest.raises(ValidationError, match='maximum limit'):
        await file_service.store_file(filename, 'text/plain', MAX_SIZE + 1, as_stream(b'x'))


async def test_store_rejects_unsafe_name(file_service):
    with pytest.raises(ValidationError):
        await store(file_service, 'a..txt')


async def test_missing_content_type_defaults(file_service):
    record = await store(file_service, 'notes.txt', content_type=None)
    assert record.content_type == 'application/octet-stream'


async def test_round_trip(file_service):
    data = bytes(range(256)) * 10
    record = await store(file_service, 'blob.png', data, 'image/png')

    fetched, body = await download(file_service, record.id)
    assert fetched.id == record.id
    assert body == data


async def test_write_fault_creates_no_record(file_service):
    async def broken_stream():
        yield b'part'
        raise OSError('connection reset')

    with pytest.raises(StorageFault):
        await file_service.store_file('notes.txt', 'text/plain', 8, broken_stream())
    assert await file_service.list_files() == []


async def test_metadata_fault_leaves_orphan_blob(blob_store):
    service = FileService(FileValidator(), blob_store, FailingMetadataStore())
    with pytest.raises(StorageFault):
        await store(service, 'notes.txt')
    assert len(list(blob_store.root.iterdir())) == 1


async def test_get_missing_file(file_service):
    with pytest.raises(NotFoundError):
        await file_service.get_file(42)


async def test_delete_then_get_and_delete_again(file_service):
    record = await store(file_service, 'notes.txt')
    await file_service.delete_file(record.id)

    with pytest.raises(NotFoundError):
        await file_service.get_file(record.id)
    with pytest.raises(NotFoundError):
        await file_service.delete_file(record.id)
    assert not await file_service.blob_store.exists(record.stored_name)


async def test_delete_succeeds_when_blob_already_gone(file_service):
    record = await store(file_service, 'notes.txt')
    file_service.blob_store.path_for(record.stored_name).unlink()

    await file_service.delete_file(record.id)
    assert await file_service.list_files() == []


async def test_download_with_missing_blob_is_not_found(file_service):
    record = await store(file_service, 'notes.txt')
    file_service.blob_store.path_for(record.stored_name).unlink()

    with pytest.raises(NotFoundError):
        await file_service.open_for_download(record.id)
    with pytest.raises(NotFoundError):
        await file_service.open_for_view(record.id)


async def test_view_resolves_csv_case_insensitively(blob_store):
    service = FileService(
        FileValidator(['txt', 'jpg', 'jpeg', 'png', 'json', 'csv']),
        blob_store,
        InMemoryMetadataStore(),
    )
    record = await store(service, 'report.CSV', b'a,b\n1,2\n', 'application/vnd.ms-excel')

    fetched, reader, content_type = await service.open_for_view(record.id)
    assert fetched.original_name == 'report.CSV'
    assert content_type == 'text/csv;charset=utf-8'
    assert await reader.read() == b'a,b\n1,2\n'
    await reader.aclose()


async def test_view_keeps_declared_type_for_images(file_service):
    record = await store(file_service, 'photo.png', b'\x89PNG', 'image/png')
    _, reader, content_type = await file_service.open_for_view(record.id)
    await reader.aclose()
    assert content_type == 'image/png'


async def test_concurrent_stores_with_same_name(file_service):
    first, second = await asyncio.gather(
        store(file_service, 'same.txt', b'first upload'),
        store(file_service, 'same.txt', b'second upload'),
    )

    assert first.id != second.id
    assert first.stored_name != second.stored_name
    assert (await download(file_service, first.id))[1] == b'first upload'
    assert (await download(file_service, second.id))[1] == b'second upload'


async def test_list_after_three_stores(file_service):
    stored = [await store(file_service, f'file{i}.txt', f'body {i}'.encode()) for i in range(3)]

    listed = await file_service.list_files()
    assert [r.id for r in listed] == [r.id for r in stored]
    for record in listed:
        assert (await file_service.get_file(record.id)).original_name == record.original_name


async def test_delete_removes_row_when_blob_delete_fails(storage_root):
    blob_store = UndeletableBlobStore(storage_root)
    service = FileService(FileValidator(), blob_store, InMemoryMetadataStore())
    record = await store(service, 'notes.txt')

    await service.delete_file(record.id)

    with pytest.raises(NotFoundError):
        await service.get_file(record.id)
    assert await blob_store.exists(record.stored_name)


@pytest.mark.parametrize('filename', ['a' * 497 + '.txt', 'bad\x00name.txt', 'tab\tname.txt'])
async def test_store_rejects_unstorable_names_before_writing(file_service, storage_root, filename):
    with pytest.raises(ValidationError):
        await store(file_service, filename)
    assert list(storage_root.iterdir()) == []


async def test_store_accepts_name_at_column_limit(file_service):
    filename = 'a' * 496 + '.txt'
    record = await store(file_service, filename)
    assert record.original_name == filename


@pytest.mark.parametrize('content_type', ['text/' + 'x' * 251, 'text/plain\r\nX-Injected: 1'])
async def test_store_rejects_unstorable_content_type(file_service, storage_root, content_type):
    with pytest.raises(ValidationError, match='Content type'):
        await store(file_service, 'notes.txt', content_type=content_type)
    assert list(storage_root.iterdir()) == []
