#!/usr/bin/env python3
"""Tests for stackgraft.git.worktree module."""

import os
import tempfile
import unittest
from unittest.mock import patch

from stackgraft.git.worktree import (
    WorktreeInfo, add_worktree, get_worktree_path, parse_worktree_list,
    remove_worktree, worktree_branch_map
)
from stackgraft.utils.errors import AlreadyExistsError, BranchNotFoundError, GitError
from stackgraft.utils.shell import GitResult

PORCELAIN = """worktree /src/repo
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /src/repo.wt.auth-api
HEAD 2222222222222222222222222222222222222222
branch refs/heads/auth/api

worktree /src/detached
HEAD 3333333333333333333333333333333333333333
detached

worktree /src/bare.git
bare
"""


class TestParseWorktreeList(unittest.TestCase):
    """Tests for parse_worktree_list function."""

    def test_parse(self):
        worktrees = parse_worktree_list(PORCELAIN)
        self.assertEqual(len(worktrees), 4)
        self.assertEqual(worktrees[0].path, "/src/repo")
        self.assertEqual(worktrees[0].branch, "main")
        self.assertEqual(worktrees[1].branch, "auth/api")
        self.assertIsNone(worktrees[2].branch)
        self.assertEqual(worktrees[2].head, "3" * 40)
        self.assertTrue(worktrees[3].is_bare)

    def test_parse_empty(self):
        self.assertEqual(parse_worktree_list(""), [])


class TestWorktreeBranchMap(unittest.TestCase):
    """Tests for worktree_branch_map function."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.repo = os.path.join(self.tmp.name, "repo")
        self.wt = os.path.join(self.tmp.name, "repo.wt.a")
        os.makedirs(self.repo)
        os.makedirs(self.wt)

    def tearDown(self):
        self.tmp.cleanup()

    @patch("stackgraft.git.worktree.list_worktrees")
    def test_skips_main_detached_bare_and_missing(self, mock_list_worktrees):
        mock_list_worktrees.return_value = [
            WorktreeInfo(path=self.repo, branch="main"),
            WorktreeInfo(path=self.wt, branch="a"),
            WorktreeInfo(path=os.path.join(self.tmp.name, "gone"), branch="b"),
            WorktreeInfo(path=self.tmp.name, head="abc"),
            WorktreeInfo(path=self.tmp.name, branch="c", is_bare=True),
        ]
        self.assertEqual(worktree_branch_map(self.repo), {"a": self.wt})

    @patch("stackgraft.git.worktree.list_worktrees")
    def test_trailing_separator_on_repo(self, mock_list_worktrees):
        mock_list_worktrees.return_value = [WorktreeInfo(path=self.repo, branch="main")]
        self.assertEqual(worktree_branch_map(self.repo + os.sep), {})


class TestAddRemoveWorktree(unittest.TestCase):
    """Tests for add_worktree and remove_worktree."""

    def test_get_worktree_path(self):
        self.assertEqual(get_worktree_path("auth/api", "/src/repo"), "/src/repo.wt.auth-api")

    @patch("stackgraft.git.worktree.info")
    @patch("stackgraft.git.worktree.run_git_checked")
    @patch("stackgraft.git.worktree.list_worktrees")
    @patch("stackgraft.git.worktree.branch_exists")
    def test_add_existing_branch(self, mock_branch_exists, mock_list_worktrees, mock_run_git_checked, mock_info):
        mock_branch_exists.return_value = True
        mock_list_worktrees.return_value = [WorktreeInfo(path="/src/repo", branch="main")]
        path = add_worktree("auth/api", "/src/repo")
        self.assertEqual(path, "/src/repo.wt.auth-api")
        mock_run_git_checked.assert_called_once_with(
            ["worktree", "add", "/src/repo.wt.auth-api", "auth/api"], "/src/repo", cancel=None
        )

    @patch("stackgraft.git.worktree.info")
    @patch("stackgraft.git.worktree.run_git_checked")
    @patch("stackgraft.git.worktree.list_worktrees")
    @patch("stackgraft.git.worktree.branch_exists")
    def test_add_creates_branch(self, mock_branch_exists, mock_list_worktrees, mock_run_git_checked, mock_info):
        mock_branch_exists.return_value = False
        mock_list_worktrees.return_value = []
        add_worktree("new", "/src/repo", create=True)
        self.assertEqual(mock_run_git_checked.call_args_list[0].args[0], ["branch", "new"])

    @patch("stackgraft.git.worktree.branch_exists")
    def test_add_missing_branch(self, mock_branch_exists):
        mock_branch_exists.return_value = False
        with self.assertRaises(BranchNotFoundError):
            add_worktree("nope", "/src/repo")

    @patch("stackgraft.git.worktree.list_worktrees")
    @patch("stackgraft.git.worktree.branch_exists")
    def test_add_already_checked_out(self, mock_branch_exists, mock_list_worktrees):
        mock_branch_exists.return_value = True
        mock_list_worktrees.return_value = [WorktreeInfo(path="/src/elsewhere", branch="a")]
        with self.assertRaises(AlreadyExistsError):
            add_worktree("a", "/src/repo")

    @patch("stackgraft.git.worktree.run_git")
    @patch("stackgraft.git.worktree.list_worktrees")
    def test_remove_dirty_needs_force(self, mock_list_worktrees, mock_run_git):
        mock_list_worktrees.return_value = [WorktreeInfo(path="/src/repo.wt.a", branch="a")]
        mock_run_git.return_value = GitResult(0, " M file.txt", "")
        with self.assertRaises(GitError):
            remove_worktree("a", "/src/repo")

    @patch("stackgraft.git.worktree.info")
    @patch("stackgraft.git.worktree.run_git_checked")
    @patch("stackgraft.git.worktree.list_worktrees")
    def test_remove_force(self, mock_list_worktrees, mock_run_git_checked, mock_info):
        mock_list_worktrees.return_value = [WorktreeInfo(path="/src/repo.wt.a", branch="a")]
        remove_worktree("a", "/src/repo", force=True)
        mock_run_git_checked.assert_called_once_with(
            ["worktree", "remove", "--force", "/src/repo.wt.a"], "/src/repo", cancel=None
        )

    @patch("stackgraft.git.worktree.list_worktrees")
    def test_remove_unknown(self, mock_list_worktrees):
        mock_list_worktrees.return_value = []
        with self.assertRaises(BranchNotFoundError):
            remove_worktree("a", "/src/repo")


if __name__ == "__main__":
    unittest.main()
