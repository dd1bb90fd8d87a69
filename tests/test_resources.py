"""
Tests for configuration, asset resolution and knowledge lookups.
"""

import pytest

from agentkernel import (
    AssetResolver,
    InvalidArgumentError,
    KernelConfig,
    KnowledgeBase,
    NotFoundError,
    UpstreamUnavailableError,
)


@pytest.fixture
def roots(tmp_path):
    project = tmp_path / "project" / ".claude"
    bundled = tmp_path / "bundled"
    (project / "principles").mkdir(parents=True)
    (bundled / "principles").mkdir(parents=True)
    (bundled / "agents" / "core").mkdir(parents=True)
    return project, bundled


# ── KernelConfig Tests ──────────────────────────────────────

class TestKernelConfig:
    def test_from_env(self, tmp_path):
        config = KernelConfig.from_env({
            "AGENT_KERNEL_PROJECT_DIR": str(tmp_path),
            "AGENT_KERNEL_LOG_LEVEL": "debug",
        })
        assert config.project_dir == tmp_path
        assert config.project_assets == tmp_path / ".claude"
        assert config.snapshot_dir == tmp_path / ".claude" / "state" / "runs"
        assert config.resources_dir is None
        assert config.log_level == "DEBUG"

    def test_from_env_legacy_project_var(self, tmp_path):
        config = KernelConfig.from_env({"CLAUDE_PROJECT_DIR": str(tmp_path)})
        assert config.project_dir == tmp_path

    def test_from_env_state_dir_override(self, tmp_path):
        config = KernelConfig.from_env({
            "AGENT_KERNEL_PROJECT_DIR": str(tmp_path),
            "AGENT_KERNEL_STATE_DIR": str(tmp_path / "runs"),
        })
        assert config.snapshot_dir == tmp_path / "runs"

    def test_from_yaml_relative_paths(self, tmp_path):
        config_file = tmp_path / "kernel.yaml"
        config_file.write_text(
            "project_dir: project\n"
            "resources_dir: bundled\n"
            "excerpt_chars: 200\n"
        )
        config = KernelConfig.from_yaml(config_file)
        assert config.project_dir == tmp_path / "project"
        assert config.resources_dir == tmp_path / "bundled"
        assert config.excerpt_chars == 200
        assert config.chars_per_token == 4

    def test_from_yaml_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            KernelConfig.from_yaml("/nonexistent/kernel.yaml")

    def test_from_yaml_requires_mapping(self, tmp_path):
        config_file = tmp_path / "kernel.yaml"
        config_file.write_text("- not\n- a mapping\n")
        with pytest.raises(ValueError, match="mapping"):
            KernelConfig.from_yaml(config_file)

    def test_rejects_non_positive_budgets(self, tmp_path):
        with pytest.raises(ValueError):
            KernelConfig(project_dir=tmp_path, excerpt_chars=0)


# ── AssetResolver Tests ─────────────────────────────────────

class TestAssetResolver:
    def test_project_copy_wins(self, roots):
        project, bundled = roots
        (project / "principles" / "a.md").write_text("project")
        (bundled / "principles" / "a.md").write_text("bundled")
        resolver = AssetResolver(project, bundled)
        assert resolver.read("principles/a.md") == "project"

    def test_bundled_fallback(self, roots):
        project, bundled = roots
        (bundled / "principles" / "b.md").write_text("bundled")
        resolver = AssetResolver(project, bundled)
        assert resolver.read("principles/b.md") == "bundled"

    def test_missing_asset_raises_not_found(self, roots):
        resolver = AssetResolver(*roots)
        with pytest.raises(NotFoundError):
            resolver.read("commands/metadata.yaml")

    def test_missing_directory_raises_upstream(self, tmp_path):
        resolver = AssetResolver(tmp_path / "nothing")
        with pytest.raises(UpstreamUnavailableError):
            resolver.list_files("principles")

    def test_list_files_sorted_and_filtered(self, roots):
        project, _ = roots
        for name in ("b.md", "a.md", "notes.txt"):
            (project / "principles" / name).write_text(name)
        resolver = AssetResolver(*roots)
        assert [p.name for p in resolver.list_files("principles")] == ["a.md", "b.md"]

    def test_malformed_yaml_raises_upstream(self, roots):
        project, _ = roots
        (project / "bad.yaml").write_text("key: [unclosed\n")
        with pytest.raises(UpstreamUnavailableError):
            AssetResolver(*roots).load_yaml("bad.yaml")

    def test_from_config(self, tmp_path):
        config = KernelConfig(project_dir=tmp_path, resources_dir=tmp_path / "bundled")
        resolver = AssetResolver.from_config(config)
        assert resolver.roots == [tmp_path / ".claude", tmp_path / "bundled"]


# ── KnowledgeBase Tests ─────────────────────────────────────

class TestKnowledgeBase:
    @pytest.fixture
    def kb(self, roots):
        project, bundled = roots
        (project / "principles" / "defensive-programming.md").write_text(
            "# Defensive Programming\nFail fast and visibly.\n"
        )
        (project / "principles" / "evidence.md").write_text(
            "# Progressive Evidence\nSee also defensive programming.\n"
        )
        (bundled / "agents" / "core" / "planner.md").write_text("# Planner\nPlans things.\n")
        return KnowledgeBase(AssetResolver(project, bundled))

    def test_list_principles(self, kb):
        assert kb.list_principles() == ["defensive-programming", "evidence"]

    def test_get_principle_exact_name(self, kb):
        doc = kb.get_principle("defensive-programming")
        assert doc["filename"] == "defensive-programming.md"
        assert "Fail fast" in doc["content"]

    def test_get_principle_by_content(self, kb):
        doc = kb.get_principle("progressive evidence")
        assert doc["filename"] == "evidence.md"

    def test_get_principle_missing(self, kb):
        with pytest.raises(NotFoundError):
            kb.get_principle("no-such-thing")

    def test_search_principles(self, kb):
        assert kb.search_principles("DEFENSIVE") == ["defensive-programming", "evidence"]
        assert kb.search_principles("progressive") == ["evidence"]

    def test_get_agent_from_bundled(self, kb):
        doc = kb.get_agent("planner")
        assert doc["content"].startswith("# Planner")

    def test_get_agent_rejects_paths(self, kb):
        with pytest.raises(InvalidArgumentError):
            kb.get_agent("../secrets")

    def test_missing_principles_dir(self, tmp_path):
        kb = KnowledgeBase(AssetResolver(tmp_path / "empty"))
        with pytest.raises(UpstreamUnavailableError):
            kb.list_principles()


# ── Command, skill and domain pack lookups ──────────────────

class TestProjectLookups:
    @pytest.fixture
    def kb(self, roots):
        project, bundled = roots
        commands = project / "commands"
        commands.mkdir()
        (commands / "explore.md").write_text("# Explore\nDiverge first.\n")
        (commands / "run.md").write_text("# Run\nFull loop.\n")
        (commands / "README.md").write_text("index")
        (commands / "metadata.yaml").write_text(
            "commands:\n"
            "  explore:\n"
            "    type: primitive\n"
            "  run:\n"
            "    type: process\n"
            "  x:\n"
            "    type: alias\n"
        )

        review = bundled / "skills" / "code-review"
        review.mkdir(parents=True)
        (review / "README.md").write_text("readme")
        (review / "checklist.md").write_text("checklist")
        debug = project / "skills" / "debugging"
        debug.mkdir(parents=True)
        (debug / "debugging.md").write_text("named after the skill")

        motion = bundled / "domain_packs" / "web_motion"
        motion.mkdir(parents=True)
        (motion / "patterns.yaml").write_text(
            "scroll_reveal:\n"
            "  trigger: viewport\n"
            "  duration_ms: 300\n"
        )
        (bundled / "domain_packs" / "data_viz").mkdir()

        (project / "CLAUDE.md").write_text("# Agent Kernel\nProtocol.\n")
        return KnowledgeBase(AssetResolver(project, bundled))

    def test_get_command(self, kb):
        doc = kb.get_command("explore")
        assert doc == {"name": "explore", "filename": "explore.md", "content": "# Explore\nDiverge first.\n"}

    def test_get_command_missing(self, kb):
        with pytest.raises(NotFoundError, match="Command 'deploy' not found"):
            kb.get_command("deploy")

    def test_get_command_rejects_paths(self, kb):
        with pytest.raises(InvalidArgumentError):
            kb.get_command("../CLAUDE")

    def test_list_commands_skips_readme(self, kb):
        assert kb.list_commands() == ["explore", "run"]
        assert kb.list_commands("all") == ["explore", "run"]

    def test_list_commands_by_category(self, kb):
        assert kb.list_commands("primitive") == ["explore"]
        assert kb.list_commands("alias") == ["x"]

    def test_list_commands_rejects_unknown_category(self, kb):
        with pytest.raises(InvalidArgumentError):
            kb.list_commands("secret")

    def test_list_commands_without_metadata_lists_all(self, roots):
        project, _ = roots
        (project / "commands").mkdir()
        (project / "commands" / "plan.md").write_text("plan")
        kb = KnowledgeBase(AssetResolver(*roots))
        assert kb.list_commands("process") == ["plan"]

    def test_load_skill_prefers_readme_over_checklist(self, kb):
        doc = kb.load_skill("code-review")
        assert doc["filename"] == "README.md"
        assert doc["content"] == "readme"

    def test_load_skill_named_file(self, kb):
        assert kb.load_skill("debugging")["content"] == "named after the skill"

    def test_load_skill_missing(self, kb):
        with pytest.raises(NotFoundError):
            kb.load_skill("juggling")

    def test_get_dslp_pattern(self, kb):
        result = kb.get_dslp_pattern("web_motion", "scroll_reveal")
        assert result["pattern"] == {"trigger": "viewport", "duration_ms": 300}

    def test_get_dslp_pattern_missing_pattern(self, kb):
        with pytest.raises(NotFoundError, match="not found in domain 'web_motion'"):
            kb.get_dslp_pattern("web_motion", "parallax")

    def test_get_dslp_pattern_missing_domain(self, kb):
        with pytest.raises(NotFoundError, match="Domain 'audio'"):
            kb.get_dslp_pattern("audio", "fade")

    def test_list_dslp_domains(self, kb):
        assert kb.list_dslp_domains() == ["data_viz", "web_motion"]

    def test_list_dslp_domains_empty_without_packs(self, tmp_path):
        assert KnowledgeBase(AssetResolver(tmp_path / "empty")).list_dslp_domains() == []

    def test_get_claude_md(self, kb):
        doc = kb.get_claude_md()
        assert doc["filename"] == "CLAUDE.md"
        assert doc["content"].startswith("# Agent Kernel")

    def test_get_claude_md_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            KnowledgeBase(AssetResolver(tmp_path / "empty")).get_claude_md()
