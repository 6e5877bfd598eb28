#!/usr/bin/env python3
"""Tests for stackgraft.stack.commit module."""

import os
import tempfile
import unittest
from unittest.mock import MagicMock, call, patch

from stackgraft.stack.commit import commit_to_branch, resolve_target_branch
from stackgraft.stack.models import StackBranch, StackDefinition
from stackgraft.stack.store import save_active_marker, save_stack
from stackgraft.utils.errors import BranchNotInStackError, GitError, NoStagedChangesError


class CommitTestCase(unittest.TestCase):
    """Real store in a temporary repository; git calls are mocked."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.repo = self.tmp.name
        os.makedirs(os.path.join(self.repo, ".git"))
        self.stack = StackDefinition(name="s", trunk="main", branches=[StackBranch(name="a"), StackBranch(name="b")])
        save_stack(self.stack, self.repo)
        save_active_marker("s", self.repo)

        # One manager so the order of git calls can be asserted
        self.git = MagicMock()
        self.git.has_staged_changes.return_value = True
        self.git.resolve_original_head.return_value = "b"
        self.git.get_current_branch.return_value = "b"
        self.git.get_short_commit.return_value = "abc1234"
        self.git.find_commit_stash.return_value = None
        for name in [
            "checkout", "get_current_branch", "resolve_original_head", "commit",
            "find_commit_stash", "has_staged_changes", "stash_pop", "stash_staged",
            "get_short_commit",
        ]:
            patcher = patch("stackgraft.stack.commit." + name, getattr(self.git, name))
            patcher.start()
            self.addCleanup(patcher.stop)
        for target in ["stackgraft.stack.commit.info", "stackgraft.stack.store.debug"]:
            patcher = patch(target)
            patcher.start()
            self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmp.cleanup()

    def git_calls(self):
        return [c[0] for c in self.git.mock_calls]


class TestResolveTargetBranch(CommitTestCase):
    """Tests for resolve_target_branch function."""

    def test_explicit_branch(self):
        self.assertEqual(resolve_target_branch("a", self.stack, self.repo), "a")

    def test_explicit_branch_not_in_stack(self):
        with self.assertRaises(BranchNotInStackError):
            resolve_target_branch("main", self.stack, self.repo)

    def test_defaults_to_top(self):
        self.assertEqual(resolve_target_branch(None, self.stack, self.repo), "b")

    def test_empty_stack_uses_current_branch(self):
        empty = StackDefinition(name="e", trunk="main")
        self.git.get_current_branch.return_value = "main"
        self.assertEqual(resolve_target_branch(None, empty, self.repo), "main")

    def test_empty_stack_detached(self):
        empty = StackDefinition(name="e", trunk="main")
        self.git.get_current_branch.return_value = None
        with self.assertRaises(GitError):
            resolve_target_branch(None, empty, self.repo)


class TestCommitToBranch(CommitTestCase):
    """Tests for commit_to_branch function."""

    def test_commit_on_current_branch(self):
        result = commit_to_branch(None, "Add login", self.repo)
        self.git.commit.assert_called_once_with(self.repo, "Add login", amend=False, cancel=None)
        self.git.stash_staged.assert_not_called()
        self.git.checkout.assert_not_called()
        self.assertEqual(result.target_branch, "b")
        self.assertEqual(result.commit, "abc1234")
        self.assertEqual(result.original_branch, "b")
        self.assertFalse(result.branches_are_stale)

    def test_nothing_staged(self):
        self.git.has_staged_changes.return_value = False
        with self.assertRaises(NoStagedChangesError):
            commit_to_branch(None, "msg", self.repo)
        self.git.commit.assert_not_called()

    def test_amend_without_staged_changes(self):
        self.git.has_staged_changes.return_value = False
        commit_to_branch(None, None, self.repo, amend=True)
        self.git.commit.assert_called_once_with(self.repo, None, amend=True, cancel=None)

    def test_commit_to_lower_branch_carries_staged_changes(self):
        result = commit_to_branch("a", "Fix base", self.repo)
        self.assertEqual(self.git_calls(), [
            "has_staged_changes", "resolve_original_head",
            "stash_staged", "checkout", "stash_pop", "commit", "checkout",
            "get_short_commit",
        ])
        self.assertEqual(self.git.checkout.call_args_list, [
            call(self.repo, "a", cancel=None),
            call(self.repo, "b", cancel=None),
        ])
        self.assertTrue(result.branches_are_stale)
        self.assertEqual(result.target_branch, "a")

    def test_amend_elsewhere_without_staged_changes_skips_stash(self):
        self.git.has_staged_changes.return_value = False
        commit_to_branch("a", None, self.repo, amend=True)
        self.git.stash_staged.assert_not_called()
        self.git.stash_pop.assert_not_called()

    def test_failed_commit_reports_stash(self):
        self.git.commit.side_effect = GitError("pre-commit hook failed")
        self.git.find_commit_stash.return_value = "deadbeef"
        with self.assertRaises(GitError) as cm:
            commit_to_branch("a", "msg", self.repo)
        self.assertIn("git stash pop deadbeef", str(cm.exception))
        self.assertEqual(self.git.checkout.call_args_list[-1], call(self.repo, "b", cancel=None))

    def test_failed_commit_stranded(self):
        self.git.commit.side_effect = GitError("pre-commit hook failed")
        self.git.checkout.side_effect = [None, GitError("cannot checkout")]
        with self.assertRaises(GitError) as cm:
            commit_to_branch("a", "msg", self.repo)
        self.assertIn("could not return to original branch 'b'", str(cm.exception))

    def test_failed_commit_returned(self):
        self.git.commit.side_effect = GitError("pre-commit hook failed")
        with self.assertRaises(GitError) as cm:
            commit_to_branch("a", "msg", self.repo)
        self.assertEqual(str(cm.exception), "pre-commit hook failed")

    def test_failure_to_return_after_commit(self):
        self.git.checkout.side_effect = [None, GitError("cannot checkout")]
        with self.assertRaises(GitError) as cm:
            commit_to_branch("a", "msg", self.repo)
        self.assertIn("Commit succeeded on 'a'", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
