"""Workflow graph model.

Graphs are authored externally (editor UI or JSON file) and are immutable
once handed to an engine. JSON field names stay camelCase (``agentId``,
``nextNodeId``) through pydantic aliases so exported graphs load unchanged.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel

from agentflow.conditions.predicates import ConditionType, Predicate, ShowConditionType
from agentflow.errors.exceptions import NodeNotFoundError


class NodeType(str, Enum):
    """Kinds of workflow nodes."""

    START = "start"
    END = "end"
    AGENT = "agent"
    HUMAN_DECISION = "human-decision"
    CONDITION = "condition"
    PARALLEL = "parallel"
    MERGE = "merge"
    LOOP = "loop"
    DELAY = "delay"


class GraphModel(BaseModel):
    """Base for immutable graph records with camelCase JSON names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> dict:
        """Dump to a JSON-compatible dict using camelCase names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Position(GraphModel):
    """Canvas position. Display-only."""

    x: float = 0.0
    y: float = 0.0


class ShowCondition(GraphModel):
    """Predicate over the previous step result deciding option visibility."""

    type: ShowConditionType = ShowConditionType.ALWAYS
    value: str | None = None


class HumanDecisionOption(GraphModel):
    """One choice offered at a human-decision node."""

    id: str = Field(..., description="Option id returned by the decider")
    label: str = Field("", description="Display label")
    next_node_id: str | None = Field(None, description="Explicit routing target")
    show_condition: ShowCondition | None = Field(None, description="Visibility filter")


class WorkflowCondition(GraphModel):
    """One routing rule of a condition node.

    Exactly one way of testing is used, checked in this order: a typed
    ``predicate``, an ``expression`` string, or a legacy ``type``/``value``
    pair.
    """

    id: str | None = None
    label: str | None = None
    predicate: Predicate | None = Field(None, description="Typed predicate tree")
    expression: str | None = Field(None, description="Expression micro-language text")
    type: ConditionType | None = Field(None, description="Legacy condition kind")
    value: str | None = Field(None, description="Legacy condition argument")
    target_node_id: str | None = None
    next_node_id: str | None = None

    @property
    def target(self) -> str | None:
        """Node to route to when this condition matches."""
        return self.target_node_id or self.next_node_id

    @property
    def display_name(self) -> str:
        """Label used in log messages."""
        return self.label or self.id or self.expression or (self.type.value if self.type else "?")


class NodeData(GraphModel):
    """Per-node configuration. Unknown editor fields are preserved."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="allow",
    )

    label: str = ""
    agent_id: str | None = Field(None, description="Agent to invoke (agent nodes)")
    question: str | None = Field(None, description="Prompt shown to the human")
    options: tuple[HumanDecisionOption, ...] = Field(default=(), description="Decision options")
    timeout: float | None = Field(None, ge=0, description="Decision timeout in seconds")
    default_option_id: str | None = Field(
        None,
        description="Option chosen when the decision times out",
    )
    conditions: tuple[WorkflowCondition, ...] = Field(default=(), description="Routing rules")
    max_iterations: int | None = Field(None, ge=0, description="Loop body repetitions")
    delay_seconds: float | None = Field(None, ge=0, description="Delay duration")


class WorkflowNode(GraphModel):
    """A typed unit of work or control-flow point."""

    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)

    @property
    def label(self) -> str:
        """Display name, falling back to the id."""
        return self.data.label or self.id


class WorkflowEdge(GraphModel):
    """Directed connection between two nodes.

    ``condition`` is informational; routing is driven by decision options
    and condition nodes.
    """

    id: str
    source: str
    target: str
    label: str | None = None
    condition: str | None = None


def _now() -> datetime:
    return datetime.now(UTC)


class WorkflowGraph(GraphModel):
    """Immutable workflow description.

    Node and edge ids must be unique. Other structural rules (one start
    node, existing edge endpoints, ...) are reported by
    :func:`agentflow.graph.validation.validate_workflow` instead of being
    enforced here, so editors can hold work-in-progress graphs.

    Example:
        >>> graph = WorkflowGraph(
        ...     id="wf-1",
        ...     name="Linear",
        ...     nodes=[
        ...         WorkflowNode(id="start", type=NodeType.START),
        ...         WorkflowNode(id="end", type=NodeType.END),
        ...     ],
        ...     edges=[WorkflowEdge(id="e1", source="start", target="end")],
        ... )
        >>> graph.first_successor("start")
        'end'
    """

    id: str
    name: str
    description: str | None = None
    version: int = 1
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    nodes: tuple[WorkflowNode, ...] = ()
    edges: tuple[WorkflowEdge, ...] = ()

    _nodes_by_id: dict[str, WorkflowNode] = PrivateAttr(default_factory=dict)
    _outgoing: dict[str, tuple[WorkflowEdge, ...]] = PrivateAttr(default_factory=dict)
    _incoming: dict[str, tuple[WorkflowEdge, ...]] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> WorkflowGraph:
        for kind, ids in (
            ("node", [n.id for n in self.nodes]),
            ("edge", [e.id for e in self.edges]),
        ):
            seen: set[str] = set()
            for item_id in ids:
                if item_id in seen:
                    raise ValueError(f"Duplicate {kind} id '{item_id}'")
                seen.add(item_id)
        return self

    def model_post_init(self, __context: object) -> None:
        self._nodes_by_id = {node.id: node for node in self.nodes}

        outgoing: dict[str, list[WorkflowEdge]] = {}
        incoming: dict[str, list[WorkflowEdge]] = {}
        for edge in self.edges:
            outgoing.setdefault(edge.source, []).append(edge)
            incoming.setdefault(edge.target, []).append(edge)
        self._outgoing = {k: tuple(v) for k, v in outgoing.items()}
        self._incoming = {k: tuple(v) for k, v in incoming.items()}

    def get_node(self, node_id: str) -> WorkflowNode | None:
        """Get a node by id."""
        return self._nodes_by_id.get(node_id)

    def require_node(self, node_id: str) -> WorkflowNode:
        """Get a node by id or raise NodeNotFoundError."""
        node = self._nodes_by_id.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def has_node(self, node_id: str) -> bool:
        """Whether a node with this id exists."""
        return node_id in self._nodes_by_id

    def nodes_of_type(self, node_type: NodeType) -> list[WorkflowNode]:
        """All nodes of one type, in graph order."""
        return [node for node in self.nodes if node.type == node_type]

    @property
    def start_node(self) -> WorkflowNode | None:
        """The first start node, if any."""
        starts = self.nodes_of_type(NodeType.START)
        return starts[0] if starts else None

    def outgoing_edges(self, node_id: str) -> tuple[WorkflowEdge, ...]:
        """Edges leaving a node, in graph order."""
        return self._outgoing.get(node_id, ())

    def incoming_edges(self, node_id: str) -> tuple[WorkflowEdge, ...]:
        """Edges entering a node, in graph order."""
        return self._incoming.get(node_id, ())

    def first_successor(self, node_id: str) -> str | None:
        """Target of the first outgoing edge."""
        edges = self.outgoing_edges(node_id)
        return edges[0].target if edges else None

    def first_predecessor(self, node_id: str) -> str | None:
        """Source of the first incoming edge."""
        edges = self.incoming_edges(node_id)
        return edges[0].source if edges else None
