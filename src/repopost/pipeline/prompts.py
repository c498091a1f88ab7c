"""Prompt templates for post drafting and repository analysis."""

from __future__ import annotations

import logging

from repopost.vcs.models import RepoFile, RepoMetadata, SelectedFile

logger = logging.getLogger(__name__)

POST_SYSTEM_PROMPT = """\
You are a LinkedIn content strategist who writes engaging posts about software projects that people actually want to read.

WRITING STYLE:
- Lead with impact: open with a problem people face or a surprising insight
- Be conversational, not technical: speak to non-developers too
- Show value first, tech details second: focus on WHAT it does and WHY it matters, not HOW
- Use storytelling: make it relatable with a real-world scenario
- Keep it scannable: short paragraphs (1-3 lines), generous line breaks
- End with engagement: ask a question or invite feedback
- Length: under 1300 characters

FORMATTING RULES (CRITICAL):
- PLAIN TEXT ONLY, absolutely no markdown
- No ** for bold, no * or - for bullets, no # for headers, no backticks, no brackets
- Just natural text with line breaks between paragraphs
- At most 3 hashtags, only at the very end, only if truly relevant

WHAT TO AVOID:
- Corporate speak: "excited to announce", "game changer", "revolutionary"
- Heavy jargon: assume the reader is smart but not deeply technical
- Feature lists: turn features into benefits people care about
- Sounding like AI: be human, authentic and specific\
"""

POST_USER_TEMPLATE = """\
Write a LinkedIn post about this GitHub repository:

Repository: {full_name}
Description: {description}
Language: {language}
Stars: {stars}
Homepage URL: {homepage}
Topics: {topics}

File Structure:
{file_tree}

Key File Contents:
{file_contents}

Focus on:
1. What problem does this solve? (lead with this)
2. Who would use this and why?
3. What makes it interesting or useful?
4. Keep it accessible: less code talk, more impact talk\
"""

SELECTION_PROMPT_TEMPLATE = """\
You are helping write a short promotional post about a software repository.
Pick the files that best explain what this project is and what it does.

Repository: {repo_name}
Description: {description}

Files (path and size in bytes), grouped by kind:
{grouped_files}

Priority rules:
- ALWAYS include the main config/manifest files and the README or other top-level docs
- Favor entry points and the core source files that implement the main feature
- Avoid tests, examples, fixtures, generated files and vendored code
- Pick at most {max_files} files

Return ONLY a JSON array of file paths exactly as listed above, no explanation:
["README.md", "package.json", "src/index.ts"]\
"""

PAGES_PROMPT_TEMPLATE = """\
Analyze this web application's routing structure and identify up to {max_pages} of the most important PUBLIC pages that should be showcased with screenshots.

Homepage URL: {homepage}

Routing Files and Structure:
{routing_content}

File Structure:
{routing_paths}

Return ONLY a JSON array (no markdown, no explanation) with up to {max_pages} pages in this exact format:
[
  {{"path": "/", "description": "Homepage"}},
  {{"path": "/about", "description": "About page"}},
  {{"path": "/blog", "description": "Blog listing"}}
]

Rules:
- Only include pages that would exist on the live site (no admin, auth, or dynamic [id] routes)
- Prioritize: homepage, about, features, blog/docs, contact/demo
- Use paths that would work in a browser (start with /)
- Keep descriptions under 3 words
- Return {max_pages} or fewer pages
- If you can't determine routes, return an empty array: []\
"""

TRUNCATION_MARKER = "\n... (truncated)"

_GROUP_TITLES: list[tuple[str, str]] = [
    ("config", "Config files"),
    ("docs", "Documentation"),
    ("entry", "Entry points"),
    ("source", "Source files"),
    ("other", "Other files"),
    ("test", "Tests and examples"),
]


def truncate(text: str, max_chars: int) -> str:
    """Cut *text* to *max_chars*, appending a marker when anything was dropped."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def build_selection_prompt(
    repo_name: str,
    description: str | None,
    groups: dict[str, list[RepoFile]],
    max_files: int,
) -> str:
    sections: list[str] = []
    for key, title in _GROUP_TITLES:
        files = groups.get(key) or []
        if not files:
            continue
        lines = "\n".join(f"- {f.path} ({f.size})" for f in files)
        sections.append(f"{title}:\n{lines}")
    return SELECTION_PROMPT_TEMPLATE.format(
        repo_name=repo_name,
        description=description or "No description provided",
        grouped_files="\n\n".join(sections),
        max_files=max_files,
    )


def build_pages_prompt(
    homepage: str, routing_files: list[SelectedFile], max_chars_per_file: int, max_pages: int
) -> str:
    routing_content = "\n\n".join(
        f"--- {f.path} ---\n{f.content[:max_chars_per_file]}" for f in routing_files
    )
    return PAGES_PROMPT_TEMPLATE.format(
        homepage=homepage,
        routing_content=routing_content,
        routing_paths="\n".join(f.path for f in routing_files),
        max_pages=max_pages,
    )


class PostPromptBuilder:
    """Renders the (system, user) prompt pair for a post draft within fixed bounds."""

    def __init__(self, max_tree_paths: int = 100, max_content_chars: int = 28_000) -> None:
        self.max_tree_paths = max_tree_paths
        self.max_content_chars = max_content_chars

    def render(
        self,
        metadata: RepoMetadata,
        files: list[RepoFile],
        contents: list[SelectedFile],
    ) -> tuple[str, str]:
        user = POST_USER_TEMPLATE.format(
            full_name=metadata.full_name,
            description=metadata.description or "No description provided",
            language=metadata.language or "Not specified",
            stars=metadata.stargazers_count,
            homepage=metadata.homepage or "None",
            topics=", ".join(metadata.topics) or "None",
            file_tree=self._file_tree(files),
            file_contents=self._bundle(contents),
        )
        return POST_SYSTEM_PROMPT, user

    def _file_tree(self, files: list[RepoFile]) -> str:
        paths = [f.path for f in files[: self.max_tree_paths]]
        hidden = len(files) - len(paths)
        if hidden > 0:
            paths.append(f"... ({hidden} more files)")
        return "\n".join(paths)

    def _bundle(self, contents: list[SelectedFile]) -> str:
        """Join file contents in order until the character budget is spent."""
        blocks: list[str] = []
        used = 0
        for f in contents:
            block = f"--- {f.path} ---\n{f.content}"
            if used + len(block) > self.max_content_chars:
                remaining = self.max_content_chars - used
                if remaining > 200:
                    blocks.append(truncate(block, remaining))
                dropped = len(contents) - len(blocks)
                logger.info("Prompt budget reached; %d file(s) left out of the draft prompt", dropped)
                break
            blocks.append(block)
            used += len(block) + 2
        return "\n\n".join(blocks)
