"""
Aggregation strategies for answers that select more than one option.

Each strategy maps the scores of the selected options (0-100 each) to a single
raw answer score on the same 0-100 scale.
"""
from typing import Callable, Dict, List

AggregationStrategy = Callable[[List[float]], float]


def average_of_selected(scores: List[float]) -> float:
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def maximum_of_selected(scores: List[float]) -> float:
    return max(scores, default=0.0)


def capped_sum_of_selected(scores: List[float]) -> float:
    return min(100.0, sum(scores))


AGGREGATION_STRATEGIES: Dict[str, AggregationStrategy] = {
    "average": average_of_selected,
    "maximum": maximum_of_selected,
    "capped_sum": capped_sum_of_selected,
}

DEFAULT_STRATEGY = "average"


def get_strategy(name: str) -> AggregationStrategy:
    try:
        return AGGREGATION_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown aggregation strategy '{name}'. Valid strategies: {sorted(AGGREGATION_STRATEGIES)}"
        )
