"""
Workflow assembly using a Pydantic state model.

Linear ingestion flow for one policy and its raw location records:
    location_extractor -> value_generator -> policy_aggregator -> persister

Key details:
- The graph's state type is a Pydantic model (BaseModel) to satisfy LangGraph.
- Node wrappers hand the nodes a plain dict and return the dict they
  produce, so node implementations stay simple.
- A small adapter lets callers pass either a dict or a WorkflowState into
  `.invoke(...)` and always get a plain dict back.
"""

from typing import AbstractSet, Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field
from langgraph.graph import END, StateGraph

from services.coverage_codes import COVERAGE_CODES
from services.product_codes import DEFAULT_PRODUCT_CODES, ProductCodeTable
from services.repository import EdiRepository


class WorkflowState(BaseModel):
    """
    Pydantic state carried through the graph. `request` holds the policy
    header and raw records; the other keys are filled in node by node.
    """

    model_config = ConfigDict(extra="allow")

    request: Dict[str, Any] = Field(default_factory=dict)
    locations: List[Dict[str, Any]] = Field(default_factory=list)
    location_values: List[Dict[str, Any]] = Field(default_factory=list)
    rejected_records: List[Dict[str, Any]] = Field(default_factory=list)
    policy: Optional[Dict[str, Any]] = None
    errors: List[str] = Field(default_factory=list)


def build_workflow(
    *,
    repository: EdiRepository,
    user_id: int,
    homeowner_package_types: AbstractSet[str],
    coverage_codes: Mapping[str, str] = COVERAGE_CODES,
    product_codes: ProductCodeTable = DEFAULT_PRODUCT_CODES,
):
    """
    Build and compile the ingestion workflow graph.
    """
    from .nodes.location_extractor import run as ex_run
    from .nodes.value_generator import run as vg_run
    from .nodes.policy_aggregator import run as pa_run
    from .nodes.persister import run as ps_run

    # ---- Node wrappers: WorkflowState -> dict ----

    def _ex_node(state: WorkflowState) -> Dict[str, Any]:
        return ex_run(state=state.model_dump(), homeowner_package_types=homeowner_package_types)

    def _vg_node(state: WorkflowState) -> Dict[str, Any]:
        return vg_run(state=state.model_dump(), coverage_codes=coverage_codes)

    def _pa_node(state: WorkflowState) -> Dict[str, Any]:
        return pa_run(state=state.model_dump(), repository=repository, product_codes=product_codes)

    def _ps_node(state: WorkflowState) -> Dict[str, Any]:
        return ps_run(state=state.model_dump(), repository=repository, user_id=user_id)

    graph = StateGraph(WorkflowState)
    graph.add_node("location_extractor", _ex_node)
    graph.add_node("value_generator", _vg_node)
    graph.add_node("policy_aggregator", _pa_node)
    graph.add_node("persister", _ps_node)

    graph.set_entry_point("location_extractor")
    graph.add_edge("location_extractor", "value_generator")
    graph.add_edge("value_generator", "policy_aggregator")
    graph.add_edge("policy_aggregator", "persister")
    graph.add_edge("persister", END)

    compiled = graph.compile()

    class _CompiledWorkflowAdapter:
        """
        Small adapter to make `.invoke(...)` ergonomic:
        - Accepts dict OR WorkflowState
        - Always returns a plain dict
        """

        def __init__(self, inner):
            self._inner = inner

        def invoke(self, input_state: Any) -> Dict[str, Any]:
            if isinstance(input_state, WorkflowState):
                state = input_state
            else:
                state = WorkflowState.model_validate(input_state)
            out = self._inner.invoke(state)
            if isinstance(out, WorkflowState):
                return out.model_dump()
            return dict(out)

    return _CompiledWorkflowAdapter(compiled)
