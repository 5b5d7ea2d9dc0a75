"""Tests for resource loading and decoding."""

from typing import TYPE_CHECKING

import pytest

from pytest_courier.errors import EncodingError, ResourceError
from pytest_courier.resources import FileResourceLoader, Resource, decode, detect_encoding

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture

    from pytest_courier.context import TestContext


@pytest.mark.parametrize('path', (
    pytest.param('/data/a.txt', id='plain'),
    pytest.param('file:/data/a.txt', id='file-prefix'),
))
def test_load_file(fs: 'FakeFilesystem', path: str) -> None:
    """Load plain and `file:` paths."""
    fs.create_file('/data/a.txt', contents='hello')

    assert FileResourceLoader().load(path) == (b'hello', None)


def test_load_relative_to_base_dir(fs: 'FakeFilesystem') -> None:
    """Relative paths are resolved against the base directory."""
    fs.create_file('/cases/data/a.txt', contents='hello')

    assert FileResourceLoader('/cases').load('data/a.txt') == (b'hello', None)


def test_load_missing_file(fs: 'FakeFilesystem') -> None:  # noqa: ARG001
    """Missing files are reported as resource errors."""
    with pytest.raises(ResourceError, match=r"^Unable to load resource '/missing.txt'"):
        FileResourceLoader().load('/missing.txt')


def test_load_package_resource(mocker: 'MockerFixture') -> None:
    """Package paths are read through `importlib.resources`."""
    files = mocker.patch('pytest_courier.resources.files')
    files.return_value.joinpath.return_value.read_bytes.return_value = b'<a/>'

    assert FileResourceLoader().load('package:my_tests/data/a.xml') == (b'<a/>', None)

    files.assert_called_once_with('my_tests')
    files.return_value.joinpath.assert_called_once_with('data/a.xml')


def test_load_missing_package() -> None:
    """Unknown packages are reported as resource errors."""
    with pytest.raises(ResourceError, match=r'no_such_courier_package'):
        FileResourceLoader().load('package:no_such_courier_package/a.xml')


@pytest.mark.parametrize(('data', 'expected'), (
    pytest.param(b'<?xml version="1.0" encoding="ISO-8859-1"?><a/>', 'ISO-8859-1', id='double-quotes'),
    pytest.param(b"  <?xml version='1.0' encoding='utf-16'?>", 'utf-16', id='single-quotes'),
    pytest.param(b'<?xml version="1.0"?><a/>', None, id='no-encoding'),
    pytest.param(b'<a/>', None, id='no-prolog'),
))
def test_detect_encoding(data: bytes, expected: str | None) -> None:
    """Detect the encoding declared by an XML prolog."""
    assert detect_encoding(data) == expected


def test_decode_errors() -> None:
    """Unknown encodings and invalid content are reported with their cause."""
    with pytest.raises(EncodingError, match=r"'klingon'$") as error:
        decode(b'a', 'klingon')

    assert isinstance(error.value.__cause__, LookupError)

    with pytest.raises(EncodingError, match=r"'utf-8'") as error:
        decode(b'\xff\xfe\xfa', 'utf-8')

    assert isinstance(error.value.__cause__, UnicodeDecodeError)


def test_resource_declared_encoding(fs: 'FakeFilesystem', context: 'TestContext') -> None:
    """The XML prolog encoding is used when none is given."""
    fs.create_file('/data/latin.xml', contents='<?xml version="1.0" encoding="ISO-8859-1"?><a>é</a>',
                   encoding='iso-8859-1')

    assert Resource(path='/data/latin.xml').read(context).endswith('<a>é</a>')


def test_resource_explicit_encoding(fs: 'FakeFilesystem', context: 'TestContext') -> None:
    """An explicit encoding wins over the default one."""
    fs.create_file('/data/latin.txt', contents='café', encoding='iso-8859-1')

    assert Resource(path='/data/latin.txt', encoding='latin-1').read(context) == 'café'

    with pytest.raises(EncodingError):
        Resource(path='/data/latin.txt').read(context)


def test_resource_path_is_resolved(fs: 'FakeFilesystem', context: 'TestContext') -> None:
    """Resource paths may contain placeholders."""
    fs.create_file('/data/orders/a.txt', contents='order')
    context.set_variable('kind', 'orders')

    assert Resource(path='/data/${kind}/a.txt').read(context) == 'order'
