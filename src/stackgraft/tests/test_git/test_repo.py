#!/usr/bin/env python3
"""Tests for stackgraft.git.repo module."""

import os
import tempfile
import unittest

from stackgraft.git.repo import is_git_repo, merge_in_progress, resolve_git_common_dir, resolve_git_dir
from stackgraft.utils.errors import NotARepositoryError


class TestResolveGitDir(unittest.TestCase):
    """Tests for git directory discovery in main checkouts and worktrees."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.main = os.path.join(self.tmp.name, "repo")
        self.git_dir = os.path.join(self.main, ".git")
        os.makedirs(self.git_dir)

        # Linked worktree layout: .git file -> .git/worktrees/wt, commondir -> ../..
        self.wt = os.path.join(self.tmp.name, "repo.wt.feature")
        self.wt_git_dir = os.path.join(self.git_dir, "worktrees", "wt")
        os.makedirs(self.wt)
        os.makedirs(self.wt_git_dir)
        with open(os.path.join(self.wt, ".git"), "w") as f:
            f.write("gitdir: {}\n".format(self.wt_git_dir))
        with open(os.path.join(self.wt_git_dir, "commondir"), "w") as f:
            f.write("../..\n")

    def tearDown(self):
        self.tmp.cleanup()

    def test_main_checkout(self):
        self.assertTrue(is_git_repo(self.main))
        self.assertEqual(resolve_git_dir(self.main), self.git_dir)
        self.assertEqual(resolve_git_common_dir(self.main), self.git_dir)

    def test_linked_worktree(self):
        self.assertTrue(is_git_repo(self.wt))
        self.assertEqual(resolve_git_dir(self.wt), self.wt_git_dir)
        self.assertEqual(resolve_git_common_dir(self.wt), os.path.normpath(self.git_dir))

    def test_relative_gitdir(self):
        with open(os.path.join(self.wt, ".git"), "w") as f:
            f.write("gitdir: ../repo/.git/worktrees/wt\n")
        self.assertEqual(resolve_git_dir(self.wt), os.path.normpath(self.wt_git_dir))

    def test_not_a_repository(self):
        plain = os.path.join(self.tmp.name, "plain")
        os.makedirs(plain)
        self.assertFalse(is_git_repo(plain))
        with self.assertRaises(NotARepositoryError):
            resolve_git_dir(plain)

    def test_merge_in_progress(self):
        self.assertFalse(merge_in_progress(self.main))
        self.assertFalse(merge_in_progress(self.wt))
        with open(os.path.join(self.wt_git_dir, "MERGE_HEAD"), "w") as f:
            f.write("abc\n")
        self.assertTrue(merge_in_progress(self.wt))
        self.assertFalse(merge_in_progress(self.main))


if __name__ == "__main__":
    unittest.main()
