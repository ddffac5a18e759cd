"""
Test the command-line entry point: exit codes, stdout/stderr messages,
default output name, and that failed runs never write an output file.
"""
import io
import logging
import os
import shutil
import tempfile
from contextlib import redirect_stderr, redirect_stdout

import main as cli
from sample_pngs import HEIGHT_OFFSET, WIDTH_OFFSET, corrupt, make_png


def _run(argv):
    """Run the CLI; return (exit code, stdout, stderr)."""
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        try:
            cli.main(argv)
        except SystemExit as e:
            code = e.code
        else:
            code = None
    return code, out.getvalue(), err.getvalue()


def _write(path, data):
    with open(path, "wb") as f:
        f.write(data)


def main():
    print("=" * 60)
    print("  crcfix CLI — Test Suite")
    print("=" * 60)
    print()

    test_cli_success()
    test_cli_success_keeps_stderr_empty()
    test_cli_log_levels()
    test_cli_default_output()
    test_cli_parallel_workers()
    test_cli_correct_crc()
    test_cli_not_found()
    test_cli_missing_input()
    test_cli_not_a_png()
    test_cli_rejects_bad_arguments()

    print()
    print("=" * 60)
    print("  ALL TESTS PASSED ✅")
    print("=" * 60)


def test_cli_success():
    print("── Test: CLI repairs width ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        original = make_png(300, 200)
        src = os.path.join(tmpdir, "in.png")
        dst = os.path.join(tmpdir, "out.png")
        _write(src, corrupt(original, WIDTH_OFFSET, 30))

        code, out, err = _run([src, "-o", dst, "-q"])
        assert code == 0, err
        assert out.strip() == "FOUND! width: 300 height: 200"
        with open(dst, "rb") as f:
            assert f.read() == original
        print("  ✅ CLI success: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_success_keeps_stderr_empty():
    print("── Test: CLI success writes nothing to stderr ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        original = make_png(70, 20, "L")
        src = os.path.join(tmpdir, "in.png")
        dst = os.path.join(tmpdir, "out.png")
        _write(src, corrupt(original, HEIGHT_OFFSET, 2000))

        code, out, err = _run([src, "-o", dst])
        assert code == 0
        assert out == "FOUND! width: 70 height: 20\n"
        assert err == ""
        print("  ✅ CLI quiet success: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_log_levels():
    print("── Test: CLI log levels ──")
    assert cli.log_level(0, False) == logging.WARNING
    assert cli.log_level(1, False) == logging.INFO
    assert cli.log_level(2, False) == logging.DEBUG
    assert cli.log_level(3, False) == logging.DEBUG
    assert cli.log_level(2, True) == logging.ERROR

    args = cli.build_parser().parse_args(["x.png", "-vv"])
    assert args.verbose == 2
    assert cli.build_parser().parse_args(["x.png"]).verbose == 0
    print("  ✅ CLI log levels: PASS")


def test_cli_default_output():
    print("── Test: CLI default output name ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    cwd = os.getcwd()
    try:
        original = make_png(33, 44, "L")
        _write(os.path.join(tmpdir, "in.png"), corrupt(original, HEIGHT_OFFSET, 4400))
        os.chdir(tmpdir)

        code, out, _ = _run(["in.png", "-q"])
        assert code == 0
        assert "width: 33 height: 44" in out
        with open(os.path.join(tmpdir, cli.DEFAULT_OUTPUT), "rb") as f:
            assert f.read() == original
        assert cli.DEFAULT_OUTPUT == "output.png"
        print("  ✅ CLI default output: PASS")
    finally:
        os.chdir(cwd)
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_parallel_workers():
    print("── Test: CLI with worker processes ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        original = make_png(5000, 3, "L")
        src = os.path.join(tmpdir, "in.png")
        dst = os.path.join(tmpdir, "out.png")
        _write(src, corrupt(original, WIDTH_OFFSET, 2))

        code, out, _ = _run([src, "-o", dst, "-j", "2", "-q"])
        assert code == 0
        assert "width: 5000 height: 3" in out
        with open(dst, "rb") as f:
            assert f.read() == original
        print("  ✅ CLI workers: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_correct_crc():
    print("── Test: CLI on an intact file ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        src = os.path.join(tmpdir, "in.png")
        dst = os.path.join(tmpdir, "out.png")
        _write(src, make_png(12, 12))

        code, out, err = _run([src, "-o", dst, "-q"])
        assert code == 1
        assert out == ""
        assert "no incorrect crc" in err
        assert not os.path.exists(dst)
        print("  ✅ CLI intact file: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_not_found():
    print("── Test: CLI search exhausted ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        src = os.path.join(tmpdir, "in.png")
        dst = os.path.join(tmpdir, "out.png")
        _write(src, corrupt(make_png(300, 10, "L"), WIDTH_OFFSET, 1))

        # 300 is outside a 1..299 search
        code, out, err = _run([src, "-o", dst, "--max-dimension", "299", "-q"])
        assert code == 1
        assert out == ""
        assert "not found" in err
        assert not os.path.exists(dst)
        print("  ✅ CLI not found: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_missing_input():
    print("── Test: CLI missing input ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        code, _, err = _run([os.path.join(tmpdir, "nope.png"), "-q"])
        assert code == 1
        assert "failed to open input file" in err
        print("  ✅ CLI missing input: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_not_a_png():
    print("── Test: CLI unparsable input ──")
    tmpdir = tempfile.mkdtemp(prefix="test_cli_")
    try:
        src = os.path.join(tmpdir, "in.png")
        _write(src, b"definitely not a png file")
        code, _, err = _run([src, "-o", os.path.join(tmpdir, "out.png"), "-q"])
        assert code == 1
        assert "failed to parse PNG" in err
        assert os.listdir(tmpdir) == ["in.png"]
        print("  ✅ CLI unparsable input: PASS")
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def test_cli_rejects_bad_arguments():
    print("── Test: CLI argument validation ──")
    for argv in ([], ["x.png", "--max-dimension", "0"], ["x.png", "-j", "-1"]):
        code, _, err = _run(argv)
        assert code == 2, (argv, code)
        assert "usage:" in err
    print("  ✅ CLI argument validation: PASS")


if __name__ == "__main__":
    main()
