"""README generation.

The generated README starts from a skeleton shipped with the bundles and is
rebuilt wholesale on every run by a fixed sequence of substitution passes:

1. project name heading,
2. bootstrap sentence by project type,
3. the feature bullet block under ``## 📋 Features``,
4. badge lines of disabled features,
5. the fenced directory tree under ``## 📁 Project Structure``.

Every pass targets exact placeholder text.  When a placeholder is missing
the section is left as it is.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from appbooster.config import FeatureSet

TITLE_PLACEHOLDER = "# Project Name"
BOOTSTRAP_PLACEHOLDER = "This project was bootstrapped with"

BOOTSTRAP_SENTENCES: dict[str, str] = {
    "vite": "This Vite React project was bootstrapped with",
    "nextjs": "This Next.js project was bootstrapped with",
}

FEATURES_HEADING = "## 📋 Features"
STRUCTURE_HEADING = "## 📁 Project Structure"

_FEATURES_RE = re.compile(r"^## 📋 Features\n\n(?:- .*(?:\n|$))+", re.MULTILINE)
_STRUCTURE_RE = re.compile(r"^## 📁 Project Structure\n\n```\n.*?```", re.MULTILINE | re.DOTALL)

# Badge markup removed when the matching feature is disabled.
BADGES: dict[str, str] = {
    "typescript": "[![TypeScript](https://img.shields.io/badge/TypeScript-Ready-blue?logo=typescript)](https://www.typescriptlang.org/)",
    "testing": "[![Jest](https://img.shields.io/badge/Jest-Tested-green?logo=jest)](https://jestjs.io/)",
    "git_hooks": "[![Husky](https://img.shields.io/badge/Husky-Enabled-yellow?logo=git)](https://typicode.github.io/husky/)",
    "ci": "[![CI/CD](https://img.shields.io/badge/CI/CD-GitHub_Actions-white?logo=github-actions)](https://github.com/features/actions)",
}

DEPLOYMENT_LABELS: dict[str, str] = {
    "vercel": "Vercel",
    "netlify": "Netlify",
    "render": "Render",
}


# ---------------------------------------------------------------------------
# Section builders
# ---------------------------------------------------------------------------


def feature_bullets(features: FeatureSet) -> list[str]:
    """Feature bullet texts, in display order."""
    bullets = [
        "⚡ TypeScript-enabled build setup"
        if features.use_typescript
        else "⚡ JavaScript-based build setup"
    ]
    if features.testing:
        bullets.append("🧪 Jest testing environment")
    if features.linting:
        bullets.append("🔍 ESLint and Prettier for code quality")
    if features.git_hooks:
        bullets.append("🔄 Git hooks with Husky")
    if features.ci:
        bullets.append("👷 CI/CD GitHub workflows")
    if features.security:
        bullets.append("🛡️ Snyk security scanning")
    if features.service_worker:
        bullets.append("📶 Offline support with a service worker")
    if features.deployment != "none":
        bullets.append(f"🚀 Optimized for deployment on {DEPLOYMENT_LABELS[features.deployment]}")
    return bullets


def disabled_badges(features: FeatureSet) -> list[str]:
    """Badge markup to strip for *features*."""
    enabled = {
        "typescript": features.use_typescript,
        "testing": features.testing,
        "git_hooks": features.git_hooks,
        "ci": features.ci,
    }
    return [BADGES[name] for name, on in enabled.items() if not on]


def structure_entries(features: FeatureSet) -> list[str]:
    """Top-level tree entries in fixed priority order."""
    entries = ["node_modules/"]
    if features.project_type == "nextjs":
        entries += ["app/", "public/"]
    else:
        entries += ["public/", "src/"]
    if features.linting:
        entries += [".eslintrc.js", ".prettierrc"]
    if features.testing:
        entries.append("jest.config.js")
    if features.git_hooks:
        entries.append(".husky/")
    if features.ci:
        entries.append(".github/")
    entries += [".gitignore", "package.json", "README.md"]
    if features.use_typescript:
        entries.append("tsconfig.json")
    elif features.project_type == "nextjs":
        entries.append("next.config.js")
    else:
        entries.append("vite.config.js")
    return entries


def render_tree(entries: list[str]) -> str:
    lines = ["."]
    for index, entry in enumerate(entries):
        branch = "└── " if index == len(entries) - 1 else "├── "
        lines.append(f"{branch}{entry}")
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Substitution passes
# ---------------------------------------------------------------------------


def substitute_title(text: str, project_name: str) -> str:
    return text.replace(TITLE_PLACEHOLDER, f"# {project_name}", 1)


def substitute_bootstrap(text: str, project_type: str) -> str:
    return text.replace(BOOTSTRAP_PLACEHOLDER, BOOTSTRAP_SENTENCES[project_type], 1)


def substitute_features(text: str, bullets: list[str]) -> str:
    block = f"{FEATURES_HEADING}\n\n" + "".join(f"- {bullet}\n" for bullet in bullets)
    return _FEATURES_RE.sub(lambda _m: block, text, count=1)


def remove_badges(text: str, badges: list[str]) -> str:
    """Drop every line consisting of one of *badges*; other lines keep the badge text removed."""
    lines = []
    for line in text.split("\n"):
        stripped = line
        for badge in badges:
            stripped = stripped.replace(badge, "")
        if stripped != line and not stripped.strip():
            continue
        lines.append(stripped)
    return "\n".join(lines)


def substitute_structure(text: str, entries: list[str]) -> str:
    block = f"{STRUCTURE_HEADING}\n\n```\n{render_tree(entries)}```"
    return _STRUCTURE_RE.sub(lambda _m: block, text, count=1)


def render_readme(skeleton: str, features: FeatureSet) -> str:
    """Apply every substitution pass to *skeleton*."""
    text = substitute_title(skeleton, features.project_name)
    text = substitute_bootstrap(text, features.project_type)
    text = substitute_features(text, feature_bullets(features))
    text = remove_badges(text, disabled_badges(features))
    return substitute_structure(text, structure_entries(features))


class ReadmeGenerator:
    """Writes ``README.md`` into the project from the shipped skeleton."""

    def __init__(self, skeleton_path: Path) -> None:
        self.skeleton_path = skeleton_path

    async def generate(self, features: FeatureSet, target_dir: Path) -> Path | None:
        """Render and write the README; ``None`` when no skeleton is available."""
        if not self.skeleton_path.exists():
            return None
        skeleton = await asyncio.to_thread(self.skeleton_path.read_text, "utf-8")
        output = target_dir / "README.md"
        await asyncio.to_thread(output.write_text, render_readme(skeleton, features), "utf-8")
        return output
