"""Test basic functionality of radolan."""

import radolan


def test_version():
    """Test that version is defined."""
    assert hasattr(radolan, "__version__")
    assert isinstance(radolan.__version__, str)


def test_author():
    """Test that author is defined."""
    assert hasattr(radolan, "__author__")
    assert isinstance(radolan.__author__, str)


def test_email():
    """Test that email is defined."""
    assert hasattr(radolan, "__email__")
    assert isinstance(radolan.__email__, str)


def test_public_api():
    """Test that the decoding entry points are exported."""
    for name in radolan.__all__:
        assert hasattr(radolan, name)
