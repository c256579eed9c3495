"""Unit tests for the boxarr command line."""

import pytest

from boxarrows.cli import build_parser, main, png_file_name

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestPngFileName:
    """Tests for deriving the output file name."""

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("flow.box", "flow.png"),
            ("specs/flow.box", "flow.png"),
            ("archive.tar.gz", "archive.png"),
            ("plain", "plain.png"),
            (".hidden", "output.png"),
        ],
    )
    def test_names(self, source, expected):
        """Test the stem is cut at the first dot of the basename."""
        assert png_file_name(source) == expected


class TestArguments:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Test every argument is optional."""
        args = build_parser().parse_args([])
        assert args.input_file is None
        assert args.output_file is None
        assert args.scale == 2
        assert not args.verbose

    def test_output(self):
        """Test -o sets the output file."""
        args = build_parser().parse_args(["in.box", "-o", "out.png", "--scale", "3"])
        assert (args.input_file, args.output_file, args.scale) == ("in.box", "out.png", 3)


class TestMain:
    """Tests for the main entry point."""

    def test_writes_output(self, tmp_path, styled_pair_spec):
        """Test a spec renders to the requested PNG."""
        source = tmp_path / "pair.box"
        source.write_text(styled_pair_spec)
        output = tmp_path / "out.png"
        assert main([str(source), "-o", str(output)]) == 0
        assert output.read_bytes().startswith(PNG_SIGNATURE)

    def test_derived_name(self, tmp_path, monkeypatch):
        """Test the output name is derived from the input in the working directory."""
        source = tmp_path / "specs" / "flow.v2.box"
        source.parent.mkdir()
        source.write_text("box a\n")
        monkeypatch.chdir(tmp_path)
        assert main([str(source)]) == 0
        assert (tmp_path / "flow.png").exists()

    def test_missing_input(self, tmp_path, capsys):
        """Test an unreadable input exits with 2."""
        assert main([str(tmp_path / "missing.box")]) == 2
        assert "cannot read input" in capsys.readouterr().err

    def test_spec_error(self, tmp_path, capsys):
        """Test spec errors exit with 1 and a message."""
        source = tmp_path / "bad.box"
        source.write_text("box a\nconnect a b {}\n")
        assert main([str(source), "-o", str(tmp_path / "bad.png")]) == 1
        assert "Undefined box: 'b'" in capsys.readouterr().err
        assert not (tmp_path / "bad.png").exists()

    def test_unsatisfiable(self, tmp_path, capsys):
        """Test an unsolvable layout exits with 1."""
        source = tmp_path / "conflict.box"
        source.write_text("box a\nconstrain a.left == 10\n")
        assert main([str(source), "-o", str(tmp_path / "c.png")]) == 1
        assert "UnsatisfiableConstraint" in capsys.readouterr().err
