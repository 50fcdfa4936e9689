"""
Ranking & Recommendation Stage

Turns enriched item and company aggregates into ranked lists. Every sort is
stable, so ties keep the sale-encounter order of the input.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from .models import (
    DEFAULT_RANKING_POLICY,
    CompanyAggregate,
    ItemAggregate,
    RankingPolicy,
    RestockPriority,
    RestockSuggestion,
)


def best_performing(
    items: Iterable[ItemAggregate],
    policy: RankingPolicy = DEFAULT_RANKING_POLICY,
) -> Tuple[ItemAggregate, ...]:
    """Highest performance score first"""
    ranked = sorted(items, key=lambda item: item.performance_score, reverse=True)
    return tuple(ranked[:policy.top_n])


def worst_performing(
    items: Iterable[ItemAggregate],
    policy: RankingPolicy = DEFAULT_RANKING_POLICY,
) -> Tuple[ItemAggregate, ...]:
    """Lowest revenue first, among items that sold at least one unit"""
    sold = [item for item in items if item.total_quantity > 0]
    ranked = sorted(sold, key=lambda item: item.total_revenue)
    return tuple(ranked[:policy.top_n])


def needs_restock(item: ItemAggregate, policy: RankingPolicy = DEFAULT_RANKING_POLICY) -> bool:
    """Out of stock or low stock, and performing"""
    low_stock = bool(item.is_out_of_stock) or (item.current_quantity or 0) < policy.low_stock_threshold
    return low_stock and item.performance_score > 0


def restocking_suggestions(
    items: Iterable[ItemAggregate],
    policy: RankingPolicy = DEFAULT_RANKING_POLICY,
) -> Tuple[RestockSuggestion, ...]:
    """Restock candidates by descending score. Out of stock items are High priority."""
    candidates = [item for item in items if needs_restock(item, policy)]
    ranked = sorted(candidates, key=lambda item: item.performance_score, reverse=True)

    return tuple(
        RestockSuggestion(
            item_name=item.item_name,
            company_name=item.company_name,
            current_quantity=item.current_quantity or 0,
            is_out_of_stock=bool(item.is_out_of_stock),
            performance_score=item.performance_score,
            total_revenue=item.total_revenue,
            sales_velocity=item.sales_velocity,
            priority=RestockPriority.HIGH if item.is_out_of_stock else RestockPriority.MEDIUM,
        )
        for item in ranked[:policy.top_n]
    )


def avoid_restocking(
    items: Iterable[ItemAggregate],
    avg_sale_value: float,
    policy: RankingPolicy = DEFAULT_RANKING_POLICY,
) -> Tuple[ItemAggregate, ...]:
    """
    Items that should not be prioritized for restocking.

    Args:
        items: Enriched item aggregates
        avg_sale_value: Window-global average sale value (not per item)
        policy: Ranking thresholds

    Returns:
        Lowest revenue first
    """
    revenue_ceiling = avg_sale_value * policy.avoid_revenue_multiplier
    candidates = [
        item for item in items
        if item.total_revenue < revenue_ceiling
        and item.sale_count < policy.avoid_max_sale_count
        and item.sales_velocity < policy.avoid_max_velocity
    ]
    ranked = sorted(candidates, key=lambda item: item.total_revenue)
    return tuple(ranked[:policy.top_n])


def score_companies(
    companies: Iterable[CompanyAggregate],
    items: Iterable[ItemAggregate],
) -> List[CompanyAggregate]:
    """Attach the average performance score of each company's items"""
    scores: Dict[str, List[float]] = {}
    for item in items:
        scores.setdefault(item.company_name, []).append(item.performance_score)

    scored = []
    for company in companies:
        company_scores = scores.get(company.company_name, [])
        avg_score = sum(company_scores) / len(company_scores) if company_scores else 0.0
        scored.append(replace(
            company,
            avg_performance_score=avg_score,
            item_count=len(company_scores),
        ))
    return scored


def rank_companies_by_revenue(companies: Iterable[CompanyAggregate]) -> Tuple[CompanyAggregate, ...]:
    """Highest total revenue first"""
    return tuple(sorted(companies, key=lambda company: company.total_revenue, reverse=True))


def rank_companies_by_performance(companies: Iterable[CompanyAggregate]) -> Tuple[CompanyAggregate, ...]:
    """Highest average item performance score first"""
    return tuple(sorted(
        companies,
        key=lambda company: company.avg_performance_score or 0.0,
        reverse=True,
    ))
