"""Tests for the lethe command line."""

import json
import os
import sys
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from loguru import logger

from lethe.cli import main

from conftest import make_policy, make_rule


@pytest.fixture
def runner():
    yield CliRunner()
    # The CLI points loguru at the runner's stderr, which is closed afterwards
    logger.remove()
    logger.add(sys.stderr)


class TestPresetsCommand:
    """Test preset listing and display."""

    def test_lists_presets(self, runner):
        result = runner.invoke(main, ["presets"])
        assert result.exit_code == 0
        for preset_id in ("conservative", "balanced", "aggressive", "minimal", "privacy_focused"):
            assert preset_id in result.output

    def test_show_preset(self, runner):
        result = runner.invoke(main, ["show-preset", "minimal"])
        assert result.exit_code == 0
        body = json.loads(result.output)
        assert body["policy_name"] == "Minimal Memory Footprint"

    def test_show_unknown_preset(self, runner):
        result = runner.invoke(main, ["show-preset", "reckless"])
        assert result.exit_code == 1


class TestValidateCommand:
    """Test policy file validation."""

    def test_valid_policy(self, runner, tmp_path):
        policy_file = tmp_path / "policy.json"
        policy_file.write_text(json.dumps(make_policy(policy_name="Weekend Cleanup")))

        result = runner.invoke(main, ["validate", str(policy_file)])

        assert result.exit_code == 0
        assert "OK: 'Weekend Cleanup' with 1 rule(s), active=True" in result.output

    def test_invalid_policy(self, runner, tmp_path):
        policy_file = tmp_path / "policy.json"
        policy_file.write_text(json.dumps(make_policy(rules=[make_rule(conditions=[])])))

        result = runner.invoke(main, ["validate", str(policy_file)])

        assert result.exit_code == 1

    def test_missing_section(self, runner, tmp_path):
        config = make_policy()
        del config["user_preferences"]
        policy_file = tmp_path / "policy.json"
        policy_file.write_text(json.dumps(config))

        result = runner.invoke(main, ["validate", str(policy_file)])

        assert result.exit_code == 1

    def test_malformed_json(self, runner, tmp_path):
        policy_file = tmp_path / "policy.json"
        policy_file.write_text("{not json")

        result = runner.invoke(main, ["validate", str(policy_file)])

        assert result.exit_code == 1


class TestPoliciesCommand:
    """Test listing the starting policies."""

    def test_lists_default_policy(self, runner):
        result = runner.invoke(main, ["policies"])
        assert result.exit_code == 0
        assert "default_conservative" in result.output
        assert "Default Conservative Policy (3 rules, active)" in result.output

    def test_without_seed(self, runner):
        with patch.dict(os.environ, {"POLICY__SEED_DEFAULT_POLICY": "false"}):
            result = runner.invoke(main, ["policies"])
        assert result.exit_code == 0
        assert "No policies registered" in result.output


class TestConfiguration:
    """Test settings errors at startup."""

    def test_invalid_settings_exit(self, runner):
        with patch.dict(os.environ, {"POLICY__DEFAULT_DELAY_HOURS": "-5"}):
            result = runner.invoke(main, ["presets"])
        assert result.exit_code == 1
