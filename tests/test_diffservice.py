import difflib
import sys
import threading

import pytest

from revdog.diffservice import DiffCmd, DiffCommandError, DiffString, EmptyDiff

DIFFTEXT = """diff --git a/golint.old.go b/golint.new.go
index 34cacb9..a727dd3 100644
--- a/golint.old.go
+++ b/golint.new.go
@@ -2,6 +2,12 @@ package test
 
 var V int
 
+var NewError1 int
+
 // invalid func comment
 func F() {
 }
+
+// invalid func comment2
+func F2() {
+}
"""

OLD = """package test

var V int

// invalid func comment
func F() {
}
"""

NEW = """package test

var V int

var NewError1 int

// invalid func comment
func F() {
}

// invalid func comment2
func F2() {
}
"""


def test_diff_string():
    d = DiffString(DIFFTEXT, 1)
    assert d.diff() == DIFFTEXT.encode()
    assert d.strip == 1


def test_empty_diff():
    d = EmptyDiff()
    assert d.diff() == b""
    assert d.strip == 0


def test_diff_cmd_concurrent_and_cached(tmp_path):
    old = tmp_path / "golint.old.go"
    new = tmp_path / "golint.new.go"
    counter = tmp_path / "count"
    old.write_text(OLD)
    new.write_text(NEW)
    script = (
        "import difflib, sys\n"
        "with open(sys.argv[3], 'a') as c: c.write('x')\n"
        "a = open(sys.argv[1]).read().splitlines(True)\n"
        "b = open(sys.argv[2]).read().splitlines(True)\n"
        "sys.stdout.write(''.join(difflib.unified_diff(a, b, 'a', 'b')))\n"
        "sys.exit(1)\n"
    )
    d = DiffCmd([sys.executable, "-c", script, str(old), str(new), str(counter)], 1)
    want = "".join(difflib.unified_diff(
        OLD.splitlines(True), NEW.splitlines(True), "a", "b"))

    results = []
    threads = [threading.Thread(target=lambda: results.append(d.diff())) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 3
    assert all(r.decode().replace("\r\n", "\n") == want for r in results)
    assert counter.read_text() == "x"
    assert d.strip == 1


def test_diff_cmd_failure_without_output():
    d = DiffCmd([sys.executable, "-c", "import sys; sys.exit(2)"], 0)
    with pytest.raises(DiffCommandError):
        d.diff()


def test_diff_cmd_missing_program(tmp_path):
    d = DiffCmd([str(tmp_path / "no-such-program")], 0)
    with pytest.raises(DiffCommandError):
        d.diff()