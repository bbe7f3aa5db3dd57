"""Prompt construction for the analysis model."""

from __future__ import annotations

from typing import Sequence

from docpilot.services.analysis.engine import CommitContext, DocContext
from docpilot.utils.text import truncate

COMMIT_ANALYSIS_SYSTEM_PROMPT = """You are an expert documentation assistant that analyzes Git commits to identify missing documentation.

Analyze the commit and provide:
1. A brief summary of what changed
2. A description of the changes
3. Any missing documentation that should be created
4. Confidence level (0-100)

Respond with a JSON object of this shape:
{
  "summary": string,
  "description": string,
  "suggestions": [
    {
      "function_name": string | null,
      "class_name": string | null,
      "file_name": string,
      "suggested_content": string,
      "confidence": number (0-100),
      "kind": "function" | "class" | "module" | "api"
    }
  ],
  "overall_confidence": number (0-100)
}"""

PROCESS_IMPROVEMENT_SYSTEM_PROMPT = """You are a documentation process improvement expert.

Analyze commits and existing documentation to identify patterns and suggest improvements.
Focus on:
- Commits without corresponding documentation
- Inconsistent documentation patterns
- Missing process documentation
- Opportunities for automation

Respond with a JSON object: {"improvements": [{"pattern": string, "description": string, "recommendation": string, "priority": "low" | "medium" | "high"}]}"""

RELEASE_NOTES_SYSTEM_PROMPT = """You are a technical writer that creates comprehensive release notes.

Analyze commits and documentation updates to generate structured release notes.
Respond with a JSON object:
{"version": string, "summary": string, "features": [string], "bug_fixes": [string], "breaking_changes": [string], "docs": [string]}"""

ASSISTANT_SYSTEM_PROMPT = """You are a knowledgeable development assistant with access to code commits and documentation.

Answer developer questions using the provided context. Be specific and cite sources when possible.
Include commit hashes, author names, and relevant documentation when answering."""


def build_commit_prompt(
    message: str, diff: str, changed_files: Sequence[str], diff_limit: int
) -> str:
    return (
        f"Commit Message: {message}\n\n"
        f"Files Changed: {', '.join(changed_files)}\n\n"
        f"Diff:\n{truncate(diff, diff_limit)}...\n\n"
        "Analyze this commit and suggest documentation updates."
    )


def _commit_line(commit: CommitContext, with_files: bool = True) -> str:
    line = f"{commit.timestamp.isoformat()}: {commit.message} by {commit.author}"
    if with_files:
        line += f" (files: {', '.join(commit.files_changed)})"
    return line


def build_process_prompt(
    commits: Sequence[CommitContext], docs: Sequence[DocContext]
) -> str:
    commits_text = "\n".join(_commit_line(c) for c in commits)
    docs_text = "\n".join(
        f"{d.path}: {d.title} - {truncate(d.content, 100)}..." for d in docs
    )
    return (
        f"Recent Commits:\n{commits_text}\n\n"
        f"Existing Documentation:\n{docs_text}\n\n"
        "Identify patterns and suggest process improvements."
    )


def build_release_notes_prompt(
    commits: Sequence[CommitContext], doc_updates: Sequence[DocContext]
) -> str:
    commits_text = "\n".join(_commit_line(c, with_files=False) for c in commits)
    docs_text = "\n".join(
        f"{d.path}: {d.title} - {truncate(d.content, 100)}..." for d in doc_updates
    )
    return (
        f"Commits:\n{commits_text}\n\n"
        f"Documentation Updates:\n{docs_text}\n\n"
        "Generate comprehensive release notes."
    )


def build_question_prompt(
    question: str, commits: Sequence[CommitContext], docs: Sequence[DocContext]
) -> str:
    commits_text = "\n".join(
        f"Commit {c.hash}: {c.message} by {c.author} on {c.timestamp.isoformat()}"
        for c in commits
    )
    docs_text = "\n\n".join(
        f"Doc: {d.path} - {d.title}\n{truncate(d.content, 200)}..." for d in docs
    )
    return (
        f"Question: {question}\n\n"
        "Available Context:\n\n"
        f"Recent Commits:\n{commits_text}\n\n"
        f"Documentation:\n{docs_text}\n\n"
        "Please answer the question using the available context."
    )
