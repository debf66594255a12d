"""LangGraph pipeline orchestrating load, profiling, quality, cleaning and analysis.

Each node accepts a PipelineState dict and returns it updated. Nodes never
raise: failures are appended to state["errors"] and every node appends a
timestamped entry to state["reasoning_log"].
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from edakit.analysis import analyze_dataset
from edakit.csv_loader import load_csv
from edakit.errors import WouldEmptyDatasetError
from edakit.models import Dataset, PipelineState
from edakit.report_generator import generate_reasoning_report, generate_report
from edakit.tools.cleaning import apply_fixes
from edakit.tools.profiling import classify
from edakit.tools.quality import scan

logger = logging.getLogger(__name__)

_MAX_LLM_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _timestamp() -> str:
    """Return an ISO-8601 UTC timestamp string."""
    return datetime.now(timezone.utc).isoformat()


def _append_reasoning(state: dict, agent: str, reasoning: str) -> None:
    """Append a reasoning log entry to state."""
    _ensure_list(state, "reasoning_log")
    state["reasoning_log"].append(
        {"timestamp": _timestamp(), "agent": agent, "reasoning": reasoning}
    )


def _append_error(state: dict, error_msg: str) -> None:
    """Append an error message to state."""
    _ensure_list(state, "errors")
    state["errors"].append(error_msg)
    logger.warning(error_msg)


def _ensure_list(state: dict, key: str) -> None:
    """Ensure *key* exists in state as a list."""
    if key not in state or state[key] is None:
        state[key] = []


def _current_dataset(state: dict, node: str) -> Optional[Dataset]:
    dataset = state.get("dataset")
    if dataset is None:
        _append_error(state, f"{node}: No dataset available.")
        _append_reasoning(state, node, "Skipped: no dataset loaded.")
    return dataset


# ---------------------------------------------------------------------------
# Node: load_node
# ---------------------------------------------------------------------------


def load_node(state: PipelineState) -> PipelineState:
    """Load the CSV at ``file_path`` into ``dataset`` and record its shape."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    try:
        result = load_csv(state.get("file_path", ""))
        if result["error"]:
            _append_error(state, f"CSV load error: {result['error']}")
            _append_reasoning(state, "load_node", f"Failed to load CSV: {result['error']}")
            state["dataset"] = None
            state["original_shape"] = None
            return state

        dataset: Dataset = result["dataset"]
        state["dataset"] = dataset
        state["original_shape"] = dataset.shape
        _append_reasoning(
            state, "load_node", f"Successfully loaded CSV with shape {dataset.shape}."
        )
    except Exception as exc:
        _append_error(state, f"load_node exception: {exc}")
        _append_reasoning(state, "load_node", f"Exception: {exc}")
        state["dataset"] = None
        state["original_shape"] = None

    return state


# ---------------------------------------------------------------------------
# Node: profile_node
# ---------------------------------------------------------------------------


def profile_node(state: PipelineState) -> PipelineState:
    """Infer a type for every column."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    try:
        dataset = _current_dataset(state, "profile_node")
        if dataset is None:
            state["profiles"] = []
            return state

        profiles = classify(dataset)
        state["profiles"] = profiles
        types = ", ".join(f"{p.name}={p.inferred_type.value}" for p in profiles)
        _append_reasoning(state, "profile_node", f"Inferred column types: {types}.")
    except Exception as exc:
        _append_error(state, f"profile_node exception: {exc}")
        _append_reasoning(state, "profile_node", f"Exception: {exc}")
        state["profiles"] = []

    return state


# ---------------------------------------------------------------------------
# Node: scan_node
# ---------------------------------------------------------------------------


def scan_node(state: PipelineState) -> PipelineState:
    """Run the quality scan over the loaded dataset."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    try:
        dataset = _current_dataset(state, "scan_node")
        if dataset is None:
            state["quality_report"] = None
            return state

        report = scan(dataset, state.get("profiles") or None)
        state["quality_report"] = report
        _append_reasoning(
            state,
            "scan_node",
            f"Quality score {report.overall_score}/100 with {len(report.issues)} issues.",
        )
    except Exception as exc:
        _append_error(state, f"scan_node exception: {exc}")
        _append_reasoning(state, "scan_node", f"Exception: {exc}")
        state["quality_report"] = None

    return state


# ---------------------------------------------------------------------------
# Node: clean_node
# ---------------------------------------------------------------------------


def clean_node(state: PipelineState) -> PipelineState:
    """Apply the auto-fixable issues of the quality report.

    When the fixes would empty the dataset the original is kept and the
    refusal is recorded as an error.
    """
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")
    _ensure_list(state, "cleaning_log")

    try:
        dataset = _current_dataset(state, "clean_node")
        report = state.get("quality_report")
        if dataset is None:
            return state
        if report is None:
            _append_reasoning(state, "clean_node", "No quality report, skipping cleaning.")
            return state

        def adopt(cleaned: Dataset) -> None:
            state["dataset"] = cleaned

        _, entries = apply_fixes(dataset, report.issues, on_data_cleaned=adopt)
        state["cleaning_log"].extend(entries)
        _append_reasoning(
            state,
            "clean_node",
            f"Applied {len(entries)} fixes: {len(dataset)} → {len(state['dataset'])} rows.",
        )
    except WouldEmptyDatasetError as exc:
        _append_error(state, f"clean_node refused: {exc}")
        _append_reasoning(state, "clean_node", f"Cleaning refused: {exc}")
    except Exception as exc:
        _append_error(state, f"clean_node exception: {exc}")
        _append_reasoning(state, "clean_node", f"Exception: {exc}")

    return state


# ---------------------------------------------------------------------------
# Node: analyze_node
# ---------------------------------------------------------------------------


def analyze_node(state: PipelineState) -> PipelineState:
    """Run the full analysis over the (possibly cleaned) dataset."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    try:
        dataset = _current_dataset(state, "analyze_node")
        if dataset is None:
            state["analysis"] = None
            return state

        analysis = analyze_dataset(dataset)
        state["analysis"] = analysis
        for err in analysis.errors:
            _append_error(state, f"analyze_node: {err}")
        _append_reasoning(
            state,
            "analyze_node",
            f"Summarized {len(analysis.numeric)} numeric and "
            f"{len(analysis.categorical)} categorical columns; "
            f"{len(analysis.correlations)} correlation pairs; "
            f"{len(analysis.insights)} insights.",
        )
    except Exception as exc:
        _append_error(state, f"analyze_node exception: {exc}")
        _append_reasoning(state, "analyze_node", f"Exception: {exc}")
        state["analysis"] = None

    return state


# ---------------------------------------------------------------------------
# Node: narrate_node
# ---------------------------------------------------------------------------


def _analysis_digest(state: dict) -> str:
    analysis = state.get("analysis")
    digest: dict[str, Any] = {"shape": list(state["dataset"].shape) if state.get("dataset") else None}
    if analysis is not None:
        digest["insights"] = [
            {"severity": i.severity.value, "title": i.title, "description": i.description}
            for i in analysis.insights
        ]
        if analysis.quality is not None:
            digest["quality_score"] = analysis.quality.overall_score
            digest["suggestions"] = analysis.quality.suggestions
    return json.dumps(digest, default=str)


def _invoke_llm(llm: Any, messages: list) -> Any:
    """Invoke the model, retrying up to three times."""
    last_error: Exception | None = None
    for attempt in range(_MAX_LLM_ATTEMPTS):
        try:
            return llm.invoke(messages)
        except Exception as exc:
            last_error = exc
            logger.debug("LLM call failed (attempt %d): %s", attempt + 1, exc)
    raise last_error  # type: ignore[misc]


def narrate_node(state: PipelineState, llm: Any = None) -> PipelineState:
    """Turn the rule-based insights into a short prose narrative.

    Skipped when no language model is configured or nothing was analyzed.
    """
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    if llm is None:
        state["narrative"] = None
        _append_reasoning(state, "narrate_node", "No language model configured; skipped.")
        return state
    if state.get("analysis") is None:
        state["narrative"] = None
        _append_reasoning(state, "narrate_node", "No analysis available; skipped.")
        return state

    try:
        messages = [
            SystemMessage(
                content=(
                    "You are a data analyst. Summarize the findings below for a "
                    "non-technical reader in one or two short paragraphs. Mention "
                    "the most important data quality problems and relationships, "
                    "and do not invent numbers that are not in the findings."
                )
            ),
            HumanMessage(content=f"Findings:\n{_analysis_digest(state)}"),
        ]
        response = _invoke_llm(llm, messages)
        narrative = (
            response.content if isinstance(response.content, str) else str(response.content)
        )
        state["narrative"] = narrative
        _append_reasoning(state, "narrate_node", narrative)
    except Exception as exc:
        _append_error(state, f"narrate_node exception: {exc}")
        _append_reasoning(state, "narrate_node", f"Exception: {exc}")
        state["narrative"] = None

    return state


# ---------------------------------------------------------------------------
# Node: report_node
# ---------------------------------------------------------------------------


def report_node(state: PipelineState) -> PipelineState:
    """Generate the Markdown report and reasoning log from accumulated state."""
    _ensure_list(state, "errors")
    _ensure_list(state, "reasoning_log")

    try:
        dataset = state.get("dataset")
        output_dir = state.get("output_dir") or "output"
        report_path = generate_report(
            original_shape=state.get("original_shape") or (0, 0),
            final_shape=dataset.shape if dataset is not None else (0, 0),
            analysis=state.get("analysis"),
            cleaning_log=state.get("cleaning_log") or [],
            narrative=state.get("narrative"),
            output_dir=output_dir,
        )
        state["report_path"] = report_path
        _append_reasoning(state, "report_node", f"Report generated at {report_path}.")

        generate_reasoning_report(
            reasoning_log=state.get("reasoning_log") or [],
            errors=state.get("errors") or [],
            output_dir=output_dir,
        )
    except Exception as exc:
        _append_error(state, f"report_node exception: {exc}")
        _append_reasoning(state, "report_node", f"Exception: {exc}")
        state["report_path"] = None

    return state


# ---------------------------------------------------------------------------
# Graph builder
# ---------------------------------------------------------------------------


def _should_clean(state: PipelineState) -> str:
    """Conditional edge: clean only when auto-fix was requested and there is data."""
    if state.get("auto_fix") and state.get("dataset") is not None:
        return "clean"
    return "analyze"


def build_graph(llm: Any = None) -> Any:
    """Build and compile the LangGraph workflow.

    Nodes: load → profile → scan → (clean when ``auto_fix``) → analyze
           → narrate → report

    Args:
        llm: Optional LangChain chat model for the narrative step.

    Returns:
        A compiled LangGraph ``StateGraph``.
    """
    from functools import partial

    from langgraph.graph import END, START, StateGraph

    graph = StateGraph(PipelineState)

    graph.add_node("load", load_node)
    graph.add_node("profile", profile_node)
    graph.add_node("scan", scan_node)
    graph.add_node("clean", clean_node)
    graph.add_node("analyze", analyze_node)
    graph.add_node("narrate", partial(narrate_node, llm=llm))
    graph.add_node("report", report_node)

    graph.add_edge(START, "load")
    graph.add_edge("load", "profile")
    graph.add_edge("profile", "scan")
    graph.add_conditional_edges(
        "scan",
        _should_clean,
        {"clean": "clean", "analyze": "analyze"},
    )
    graph.add_edge("clean", "analyze")
    graph.add_edge("analyze", "narrate")
    graph.add_edge("narrate", "report")
    graph.add_edge("report", END)

    return graph.compile()
