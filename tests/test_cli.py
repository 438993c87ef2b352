"""
Tests for the CLI interface.
"""
import os
import tempfile
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from rag_cost_sim.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from rag_cost_sim.config.loader import StageDelays
from rag_cost_sim.core.errors import StageFailed
from rag_cost_sim.core.pipeline import PipelineStageMachine
from rag_cost_sim.core.pricing import GenerativeModel
from rag_cost_sim.core.token_counter import estimate_tokens

runner = CliRunner()

BEACH_QUERY = "2-bedroom apartments near the beach in St Kilda"


@pytest.fixture
def config_path():
    """Write a zero-delay config file."""
    with tempfile.TemporaryDirectory() as temp_dir:
        path = os.path.join(temp_dir, "sim.yaml")
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump({
                "delays": {"embed": 0, "search": 0, "rank": 0, "prompt": 0, "generate": 0},
                "models": {"generative": "gpt-4o-mini"},
            }, f)
        yield path


class TestCalculatorCommands:
    """Test the stateless calculator commands."""

    def test_no_command_shows_hint(self):
        """Test the bare invocation prints a hint."""
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Use --help" in result.output

    def test_models_lists_catalog(self):
        """Test the models command lists pricing."""
        result = runner.invoke(app, ["models"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "gpt-4o-mini" in result.output
        assert "text-embedding-3-large" in result.output
        assert "3072" in result.output

    def test_tokens(self):
        """Test token estimation output."""
        result = runner.invoke(app, ["tokens", "abcdefghi"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Characters: 9" in result.output
        assert "Estimated tokens: 3" in result.output

    def test_cost(self):
        """Test the cost breakdown output."""
        result = runner.invoke(app, ["cost", "-i", "1000000", "-o", "1000000", "-m", "gpt-4o"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Input cost: $5.000000" in result.output
        assert "Output cost: $15.000000" in result.output
        assert "Total cost: $20.000000" in result.output
        assert "Embedding cost" not in result.output

    def test_cost_with_embedding(self):
        """Test the embedding component is shown when a model is given."""
        result = runner.invoke(app, [
            "cost", "-i", "0", "--embedding-tokens", "1000000", "-e", "text-embedding-ada-002",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Embedding cost: $0.100000" in result.output

    def test_cost_compare(self):
        """Test the model comparison table."""
        result = runner.invoke(app, ["cost", "-i", "1000", "-o", "1000", "--compare"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Model comparison" in result.output
        assert "claude-3.7-sonnet" in result.output

    def test_cost_unknown_model(self):
        """Test unknown models fail with exit code 1."""
        result = runner.invoke(app, ["cost", "-i", "10", "-m", "generative-xl"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unsupported model: generative-xl" in result.output

    def test_cost_negative_tokens(self):
        """Test negative token counts fail with exit code 1."""
        result = runner.invoke(app, ["cost", "--input-tokens=-5"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "cannot be negative" in result.output

    def test_embedding_cost_defaults(self):
        """Test the bulk embedding estimate with defaults."""
        result = runner.invoke(app, ["embedding-cost"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Tokens per Property: 180" in result.output
        assert "Number of Properties: 4,000" in result.output
        assert "Total Tokens: 720,000" in result.output
        assert "Million Tokens: 0.72" in result.output
        assert "Estimated Total Cost: $0.01" in result.output

    def test_embedding_cost_query_scenario(self):
        """Test the query scenario labels."""
        result = runner.invoke(app, [
            "embedding-cost", "-t", "20", "-n", "50000000", "-m", "text-embedding-3-large", "-s", "query",
        ])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Number of Queries: 50,000,000" in result.output
        assert "Estimated Total Cost: $130.00" in result.output

    def test_embedding_cost_invalid_count(self):
        """Test counts below one fail."""
        result = runner.invoke(app, ["embedding-cost", "-n", "0"])
        assert result.exit_code == EXIT_CODE_FAIL


class TestSimulationCommands:
    """Test the ask and chat commands."""

    def test_ask_with_rag(self):
        """Test one turn through the full pipeline."""
        result = runner.invoke(app, ["ask", BEACH_QUERY, "--fast"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Embedding Query" in result.output
        assert "Generating Response" in result.output
        assert "Top matches" in result.output
        assert "RAG prompt" in result.output
        assert "Cost Tracking" in result.output
        assert f"Embedding Tokens: {estimate_tokens(BEACH_QUERY)}" in result.output

    def test_ask_without_rag(self):
        """Test the simplified path shows no embedding usage."""
        result = runner.invoke(app, ["ask", "anything with parking?", "--fast", "--no-rag"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Embedding Tokens: 0" in result.output
        assert "Top matches" not in result.output
        assert f"Input Tokens: {estimate_tokens('anything with parking?')}" in result.output

    def test_ask_with_config(self, config_path):
        """Test ask reads models and delays from a config file."""
        with patch("rag_cost_sim.cli.main.PipelineStageMachine", wraps=PipelineStageMachine) as machine:
            result = runner.invoke(app, ["ask", BEACH_QUERY, "--config", config_path])
        assert result.exit_code == EXIT_CODE_PASS
        config = machine.call_args.kwargs["config"]
        assert config.models.generative == GenerativeModel.GPT_4O_MINI
        assert config.delays == StageDelays.zero()
        assert "Cost Tracking" in result.output

    def test_ask_blank_query(self):
        """Test blank queries are ignored."""
        result = runner.invoke(app, ["ask", "   ", "--fast"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Empty message ignored" in result.output

    def test_ask_unknown_model(self):
        """Test an unknown model fails before the pipeline runs."""
        result = runner.invoke(app, ["ask", BEACH_QUERY, "--fast", "-m", "generative-xl"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unsupported model" in result.output
        assert "Embedding Query" not in result.output

    def test_ask_missing_config(self):
        """Test a missing config file fails."""
        result = runner.invoke(app, ["ask", BEACH_QUERY, "--config", "/nonexistent/sim.yaml"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "not found" in result.output

    def test_ask_stage_failure(self):
        """Test a failing stage reports the failure with exit code 1."""
        with patch(
            "rag_cost_sim.cli.main.PipelineStageMachine.submit",
            side_effect=StageFailed("Stage 'search' failed: down", "search"),
        ):
            result = runner.invoke(app, ["ask", BEACH_QUERY, "--fast"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Pipeline failed" in result.output

    def test_chat_session(self):
        """Test an interactive session accumulates history until exit."""
        result = runner.invoke(
            app,
            ["chat", "--fast"],
            input=f"{BEACH_QUERY}\n\nparking?\nexit\n",
        )
        assert result.exit_code == EXIT_CODE_PASS
        assert result.output.count("Cost Tracking") == 2
        assert "Session history" in result.output

    def test_chat_ends_on_eof(self):
        """Test the chat loop stops cleanly at end of input."""
        result = runner.invoke(app, ["chat", "--fast", "--no-rag"], input="parking?\n")
        assert result.exit_code == EXIT_CODE_PASS
        assert "Session history" in result.output

    def test_chat_unknown_model(self):
        """Test chat rejects an unknown model before the first message."""
        result = runner.invoke(app, ["chat", "--fast", "-m", "generative-xl"], input="parking?\n")
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unsupported model: generative-xl" in result.output
        assert "Property Search Assistant" not in result.output

    def test_chat_unknown_embedding_model(self):
        """Test chat rejects an unknown embedding model."""
        result = runner.invoke(app, ["chat", "--fast", "-e", "gpt-4o"], input="parking?\n")
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unsupported model: gpt-4o" in result.output

    def test_chat_continues_after_stage_failure(self):
        """Test a failed turn is reported and the session keeps going."""
        with patch(
            "rag_cost_sim.core.pipeline.select_response",
            side_effect=[RuntimeError("offline"), "Here you go."],
        ):
            result = runner.invoke(app, ["chat", "--fast"], input="parking?\nparking?\nexit\n")
        assert result.exit_code == EXIT_CODE_PASS
        assert "Pipeline failed" in result.output
        assert result.output.count("Cost Tracking") == 1

    def test_ask_stage_failure_shows_error_row(self):
        """Test a failing stage is rendered with its error in the stage table."""
        with patch(
            "rag_cost_sim.core.pipeline.select_response",
            side_effect=RuntimeError("offline"),
        ):
            result = runner.invoke(app, ["ask", BEACH_QUERY, "--fast"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "RAG Process" in result.output
        assert "Generating Response: offline" in result.output
        assert "Pipeline failed" in result.output
        assert "Cost Tracking" not in result.output
