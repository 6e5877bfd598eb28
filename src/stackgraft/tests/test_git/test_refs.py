#!/usr/bin/env python3
"""Tests for stackgraft.git.refs module."""

import unittest
from unittest.mock import patch

from stackgraft.git.refs import count_commits_between, get_commit, get_merge_base, is_up_to_date
from stackgraft.utils.shell import GitResult


class TestGetCommit(unittest.TestCase):
    """Tests for commit resolution."""

    @patch("stackgraft.git.refs.run_git")
    def test_get_commit(self, mock_run_git):
        mock_run_git.return_value = GitResult(0, "abc123\n", "")
        self.assertEqual(get_commit("/repo", "main"), "abc123")
        mock_run_git.assert_called_once_with(
            ["rev-parse", "--verify", "--quiet", "main^{commit}"], "/repo", cancel=None
        )

    @patch("stackgraft.git.refs.run_git")
    def test_get_commit_unknown_ref(self, mock_run_git):
        mock_run_git.return_value = GitResult(1, "", "")
        self.assertIsNone(get_commit("/repo", "nope"))

    @patch("stackgraft.git.refs.run_git")
    def test_get_merge_base_unrelated(self, mock_run_git):
        mock_run_git.return_value = GitResult(1, "", "")
        self.assertIsNone(get_merge_base("/repo", "a", "b"))


class TestIsUpToDate(unittest.TestCase):
    """Tests for is_up_to_date function."""

    @patch("stackgraft.git.refs.get_commit")
    @patch("stackgraft.git.refs.get_merge_base")
    def test_merge_base_is_parent_tip(self, mock_get_merge_base, mock_get_commit):
        mock_get_merge_base.return_value = "abc"
        mock_get_commit.return_value = "abc"
        self.assertTrue(is_up_to_date("/repo", "main", "feature"))

    @patch("stackgraft.git.refs.get_commit")
    @patch("stackgraft.git.refs.get_merge_base")
    def test_parent_moved_on(self, mock_get_merge_base, mock_get_commit):
        mock_get_merge_base.return_value = "abc"
        mock_get_commit.return_value = "def"
        self.assertFalse(is_up_to_date("/repo", "main", "feature"))

    @patch("stackgraft.git.refs.get_commit")
    @patch("stackgraft.git.refs.get_merge_base")
    def test_no_merge_base(self, mock_get_merge_base, mock_get_commit):
        mock_get_merge_base.return_value = None
        mock_get_commit.return_value = None
        self.assertFalse(is_up_to_date("/repo", "main", "feature"))


class TestCountCommitsBetween(unittest.TestCase):
    """Tests for count_commits_between function."""

    @patch("stackgraft.git.refs.run_git")
    def test_count(self, mock_run_git):
        mock_run_git.return_value = GitResult(0, "3", "")
        self.assertEqual(count_commits_between("/repo", "main", "feature"), 3)
        mock_run_git.assert_called_once_with(["rev-list", "--count", "main..feature"], "/repo", cancel=None)

    @patch("stackgraft.git.refs.run_git")
    def test_count_failure_is_zero(self, mock_run_git):
        mock_run_git.return_value = GitResult(128, "", "fatal")
        self.assertEqual(count_commits_between("/repo", "main", "feature"), 0)

    @patch("stackgraft.git.refs.run_git")
    def test_count_garbage_is_zero(self, mock_run_git):
        mock_run_git.return_value = GitResult(0, "lots", "")
        self.assertEqual(count_commits_between("/repo", "main", "feature"), 0)


if __name__ == "__main__":
    unittest.main()
