# tests/test_applier.py
import os
import unittest
import tempfile
import shutil
from pathlib import Path

from devagent.core.applier import ChangeApplier
from devagent.core.models import ChangeSet, EditAction, FileEdit, WriteStatus


class TestChangeApplier(unittest.TestCase):

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.applier = ChangeApplier()

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_creates_files_and_parent_directories(self):
        change_set = ChangeSet(files=[
            FileEdit("src/routes/hello.js", "module.exports = 1;\n"),
            FileEdit("README.md", "# Updated", EditAction.UPDATE),
        ])
        outcomes = self.applier.apply(change_set, self.test_dir)

        self.assertEqual([o.status for o in outcomes], [WriteStatus.WRITTEN, WriteStatus.WRITTEN])
        self.assertEqual((self.test_dir / "src/routes/hello.js").read_text(encoding="utf-8"), "module.exports = 1;\n")
        self.assertEqual((self.test_dir / "README.md").read_text(encoding="utf-8"), "# Updated")

    def test_overwrites_existing_content_completely(self):
        target = self.test_dir / "server.js"
        target.write_text("old content that is much longer than the new one", encoding="utf-8")
        self.applier.apply(ChangeSet(files=[FileEdit("server.js", "new", EditAction.UPDATE)]), self.test_dir)
        self.assertEqual(target.read_text(encoding="utf-8"), "new")

    def test_failure_is_isolated_and_later_edits_still_run(self):
        # a regular file where a directory is needed makes the first edit unwritable
        (self.test_dir / "blocker").write_text("i am a file", encoding="utf-8")
        change_set = ChangeSet(files=[
            FileEdit("blocker/inner.js", "never written"),
            FileEdit("ok.js", "written"),
        ])
        outcomes = self.applier.apply(change_set, self.test_dir)

        self.assertEqual(outcomes[0].status, WriteStatus.WRITE_FAILED)
        self.assertTrue(outcomes[0].reason)
        self.assertEqual(outcomes[1].status, WriteStatus.WRITTEN)
        self.assertEqual((self.test_dir / "ok.js").read_text(encoding="utf-8"), "written")
        self.assertEqual((self.test_dir / "blocker").read_text(encoding="utf-8"), "i am a file")

    def test_directory_target_is_reported_not_replaced(self):
        (self.test_dir / "folder").mkdir()
        outcomes = self.applier.apply(ChangeSet(files=[FileEdit("folder", "x")]), self.test_dir)
        self.assertEqual(outcomes[0].status, WriteStatus.WRITE_FAILED)
        self.assertTrue((self.test_dir / "folder").is_dir())

    def test_path_outside_root_is_refused(self):
        outcome = self.applier.apply_edit(FileEdit("../escape.js", "x"), self.test_dir)
        self.assertEqual(outcome.status, WriteStatus.WRITE_FAILED)
        self.assertFalse((self.test_dir.parent / "escape.js").exists())

    def test_no_temporary_files_are_left_behind(self):
        self.applier.apply(ChangeSet(files=[FileEdit("a.txt", "a"), FileEdit("b/c.txt", "c")]), self.test_dir)
        leftovers = [p.name for p in self.test_dir.rglob("*.tmp")]
        self.assertEqual(leftovers, [])

    @unittest.skipIf(os.name == "nt", "POSIX permissions only")
    def test_existing_file_mode_is_preserved(self):
        target = self.test_dir / "run.sh"
        target.write_text("#!/bin/sh\n", encoding="utf-8")
        target.chmod(0o755)
        self.applier.apply(ChangeSet(files=[FileEdit("run.sh", "#!/bin/sh\necho hi\n")]), self.test_dir)
        self.assertEqual(target.stat().st_mode & 0o777, 0o755)


if __name__ == '__main__':
    unittest.main()
