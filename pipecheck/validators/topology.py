"""
validators/topology.py - Loop detection

Two detectors over directed graphs built with networkx:

- IntraPipelineLoopValidator: steps of one pipeline, edges from outputs that
  name another step.
- InterPipelineLoopValidator: pipelines of a cluster, edges from outputs whose
  endpoint is consumed by a step of another pipeline.

Both stop at the first cycle found. Node and successor order follow insertion
order of the configuration, so the reported cycle is deterministic.
"""

from __future__ import annotations
from typing import Hashable, Iterator, List, Optional
import logging

import networkx as nx

from ..core.enums import ValidationMode
from ..core.models import ClusterConfig, PipelineConfig
from ..errors.taxonomy import ErrorCategory
from .referential import iter_outputs
from .structural import NULL_CLUSTER, NULL_PIPELINE
from .taxonomy import BaseRuleValidator, ValidationResult, failure, success

logger = logging.getLogger(__name__)

LOOP_MODES = frozenset({ValidationMode.PRODUCTION, ValidationMode.DESIGN})

# DFS colours
WHITE, GRAY, BLACK = 0, 1, 2


# =============================================================================
# GRAPHS
# =============================================================================

def find_first_cycle(graph: nx.DiGraph) -> Optional[List[Hashable]]:
    """
    First cycle of an iterative three-colour DFS.

    Roots are visited in node order, successors in edge insertion order.
    Returns the path from the back-edge target round to itself
    (e.g. [A, B, C, A], or [A, A] for a self loop), or None if acyclic.
    """
    color = {node: WHITE for node in graph}

    for root in graph:
        if color[root] != WHITE:
            continue

        color[root] = GRAY
        path = [root]
        stack: List[Iterator[Hashable]] = [iter(graph.successors(root))]

        while stack:
            for child in stack[-1]:
                if color[child] == GRAY:
                    return path[path.index(child):] + [child]
                if color[child] == WHITE:
                    color[child] = GRAY
                    path.append(child)
                    stack.append(iter(graph.successors(child)))
                    break
            else:
                color[path.pop()] = BLACK
                stack.pop()

    return None


def build_step_graph(pipeline: PipelineConfig) -> nx.DiGraph:
    """Step graph of one pipeline; references to unknown steps are skipped."""
    graph = nx.DiGraph()

    for step_id, step in pipeline.steps.items():
        if step is not None:
            graph.add_node(step_id)

    for step_id, _, target in iter_outputs(pipeline):
        if target is None or target.target_step_id is None:
            continue
        if pipeline.has_step(target.target_step_id):
            graph.add_edge(step_id, target.target_step_id)

    return graph


def build_pipeline_graph(cluster: ClusterConfig) -> nx.DiGraph:
    """
    Pipeline graph of a cluster.

    X -> Y when an output of X writes to an endpoint that a step of Y
    consumes, Y != X.
    """
    graph = nx.DiGraph()

    for name, pipeline in cluster.pipelines.items():
        if pipeline is not None:
            graph.add_node(name)

    for name, pipeline in cluster.pipelines.items():
        if pipeline is None:
            continue
        for _, _, target in iter_outputs(pipeline):
            if target is None:
                continue
            endpoint = target.endpoint_key()
            if endpoint is None:
                continue
            for consumer in cluster.consumers_of(endpoint):
                if consumer.pipeline != name and consumer.pipeline in graph:
                    graph.add_edge(name, consumer.pipeline)

    return graph


def format_cycle(cycle: List[Hashable]) -> str:
    return " -> ".join(str(node) for node in cycle)


# =============================================================================
# VALIDATORS
# =============================================================================

class IntraPipelineLoopValidator(BaseRuleValidator):
    """Rejects pipelines whose step graph has a cycle."""

    category = ErrorCategory.TOPOLOGICAL
    modes = LOOP_MODES
    order = 600

    def validate(self, config: Optional[PipelineConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_PIPELINE)

        graph = build_step_graph(config)
        cycle = find_first_cycle(graph)

        logger.debug(
            f"Step graph of '{config.name}': {graph.number_of_nodes()} nodes, "
            f"{graph.number_of_edges()} edges, cycle={cycle}"
        )

        if cycle:
            return failure(f"Pipeline '{config.name}' contains a loop: {format_cycle(cycle)}")
        return success()


class InterPipelineLoopValidator(BaseRuleValidator):
    """Rejects clusters whose pipelines feed each other in a cycle."""

    category = ErrorCategory.TOPOLOGICAL
    modes = LOOP_MODES
    order = 700

    def validate(self, config: Optional[ClusterConfig]) -> ValidationResult:
        if config is None:
            return failure(NULL_CLUSTER)

        graph = build_pipeline_graph(config)
        cycle = find_first_cycle(graph)

        logger.debug(
            f"Pipeline graph of '{config.name}': {graph.number_of_nodes()} nodes, "
            f"{graph.number_of_edges()} edges, cycle={cycle}"
        )

        if cycle:
            return failure(
                f"Cluster '{config.name}' contains an inter-pipeline loop: {format_cycle(cycle)}"
            )
        return success()
