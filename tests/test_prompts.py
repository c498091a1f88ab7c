"""Tests for repopost.pipeline.prompts."""

from repopost.pipeline.prompts import (
    POST_SYSTEM_PROMPT,
    TRUNCATION_MARKER,
    PostPromptBuilder,
    build_selection_prompt,
    truncate,
)
from repopost.pipeline.selector import group_files
from repopost.vcs.models import RepoFile, RepoMetadata, SelectedFile


class TestTruncate:
    def test_short_text_untouched(self):
        assert truncate("hello", 10) == "hello"

    def test_exact_length_untouched(self):
        assert truncate("hello", 5) == "hello"

    def test_long_text_marked(self):
        assert truncate("hello world", 5) == "hello" + TRUNCATION_MARKER


class TestSelectionPrompt:
    def test_groups_with_titles(self):
        groups = group_files(
            [RepoFile(path="package.json", size=10), RepoFile(path="src/util.ts", size=20)]
        )
        prompt = build_selection_prompt("widget", None, groups, max_files=30)
        assert "Config files:\n- package.json (10)" in prompt
        assert "Source files:\n- src/util.ts (20)" in prompt
        assert "Documentation:" not in prompt
        assert "No description provided" in prompt


class TestPostPromptBuilder:
    def test_renders_metadata(self, sample_repo_metadata, sample_files):
        contents = [SelectedFile(path="README.md", content="# Widget\nMakes widgets.")]
        system, user = PostPromptBuilder().render(sample_repo_metadata, sample_files, contents)
        assert system == POST_SYSTEM_PROMPT
        assert "Repository: acme/widget" in user
        assert "Stars: 42" in user
        assert "Homepage URL: https://widget.dev" in user
        assert "Topics: widgets, web" in user
        assert "--- README.md ---\n# Widget\nMakes widgets." in user

    def test_defaults_for_missing_metadata(self):
        metadata = RepoMetadata(owner="acme", name="bare", full_name="acme/bare")
        _, user = PostPromptBuilder().render(metadata, [], [])
        assert "Description: No description provided" in user
        assert "Language: Not specified" in user
        assert "Homepage URL: None" in user
        assert "Topics: None" in user

    def test_tree_is_capped(self, sample_repo_metadata):
        files = [RepoFile(path=f"src/m{i}.ts") for i in range(8)]
        _, user = PostPromptBuilder(max_tree_paths=5).render(sample_repo_metadata, files, [])
        assert "src/m4.ts" in user
        assert "src/m5.ts" not in user
        assert "... (3 more files)" in user

    def test_content_budget(self, sample_repo_metadata):
        contents = [SelectedFile(path=f"f{i}.md", content="x" * 400) for i in range(5)]
        builder = PostPromptBuilder(max_content_chars=1000)
        _, user = builder.render(sample_repo_metadata, [], contents)
        assert "--- f0.md ---" in user
        assert "--- f1.md ---" in user
        assert "--- f4.md ---" not in user
        assert len(builder._bundle(contents)) <= 1000 + len(TRUNCATION_MARKER) + 4
