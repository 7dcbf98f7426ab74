"""Basic tests to verify project structure."""

import pytest
from pathlib import Path

def test_package_imports():
    """Test that basic package imports work."""
    from capture_hic_designer import __version__, ViewPointConfig, Anchor

    assert __version__ == "1.0.0"
    assert ViewPointConfig is not None
    assert Anchor is not None

def test_config_creation():
    """Test basic config creation."""
    from capture_hic_designer.config import ViewPointConfig
    from capture_hic_designer.models import Approach

    config = ViewPointConfig(enzymes=["DpnII"])
    assert config.enzymes[0].site == "^GATC"
    assert config.approach == Approach.SIMPLE
    assert config.probe_length == 120
    assert config.allow_unbalanced_margins is True
    assert config.allow_patching is False

def test_exceptions():
    """Test that custom exceptions work."""
    from capture_hic_designer.exceptions import DesignError, ParseError, RangeError

    with pytest.raises(DesignError):
        raise ParseError("Parse error", line_number=1)

    with pytest.raises(ValueError):
        raise RangeError(10, 5)

    error = ParseError("Bad record", line_number=3, line_content="chr1\tx")
    assert error.line_number == 3
    assert str(error).startswith("Line 3: Bad record")

def test_models():
    """Test basic model functionality."""
    from capture_hic_designer.models import Anchor, Strand

    anchor = Anchor(contig="chr1", position=1000, name="GENE1", strand=Strand.MINUS)

    assert anchor.is_positive_strand is False

    # Test serialization
    anchor_dict = anchor.to_dict()
    assert anchor_dict["strand"] == "-"
    assert Anchor.from_dict(anchor_dict) == anchor

def test_module_entry_point_exists():
    """Test that the command line module is present."""
    import capture_hic_designer

    package_dir = Path(capture_hic_designer.__file__).parent
    assert (package_dir / "__main__.py").exists()
