"""
Lead quality scoring — how complete each submission is.

A lead's score is the percentage of its form's fields it filled (0-100).
Scores are aggregated per form and bucketed into five fixed ranges.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from leadcapture.config import SCORE_BUCKETS, SCORE_BUCKET_LABELS
from leadcapture.analytics.records import FieldCatalog, LeadRecord, form_display_name

logger = logging.getLogger('analytics.quality')


@dataclass(frozen=True)
class FormQuality:
    form_id: int
    form_name: str
    lead_count: int
    avg_score: float
    min_score: float
    max_score: float

    def to_dict(self) -> dict:
        return {
            'formId': self.form_id,
            'formName': self.form_name,
            'leadCount': self.lead_count,
            'avgScore': self.avg_score,
            'minScore': self.min_score,
            'maxScore': self.max_score,
        }


@dataclass(frozen=True)
class BucketCount:
    bucket: str
    lead_count: int


@dataclass(frozen=True)
class LeadQuality:
    per_form: Tuple[FormQuality, ...] = ()
    distribution: Tuple[BucketCount, ...] = ()
    global_avg_score: float = 0.0

    def bucket_counts(self) -> Dict[str, int]:
        """All five buckets, zero-filled, in range order."""
        counts = {label: 0 for label in SCORE_BUCKET_LABELS}
        for entry in self.distribution:
            counts[entry.bucket] = entry.lead_count
        return counts

    def to_dict(self) -> dict:
        return {
            'perForm': [f.to_dict() for f in self.per_form],
            'distribution': [{'bucket': b.bucket, 'leadCount': b.lead_count} for b in self.distribution],
            'globalAvgScore': self.global_avg_score,
        }


def score_bucket(score: float) -> str:
    """Bucket label for a 0-100 score. Upper bounds are inclusive."""
    for label, upper in SCORE_BUCKETS:
        if score <= upper:
            return label
    return SCORE_BUCKET_LABELS[-1]


def completeness_score(filled_field_ids: Set[int], form_field_ids: Set[int]) -> float:
    """Percentage of the form's fields present in filled_field_ids. 0 for a form without fields."""
    max_fields = len(form_field_ids)
    if max_fields == 0:
        return 0.0
    filled = len(filled_field_ids & form_field_ids)
    return (filled / max_fields) * 100


class _FormScores:
    """Running count/sum/min/max for one form."""

    def __init__(self):
        self.count = 0
        self.total = 0.0
        self.min_score: Optional[float] = None
        self.max_score: Optional[float] = None

    def add(self, score: float):
        self.count += 1
        self.total += score
        self.min_score = score if self.min_score is None else min(self.min_score, score)
        self.max_score = score if self.max_score is None else max(self.max_score, score)


def score_lead_quality(
    catalog: FieldCatalog,
    leads: Iterable[LeadRecord],
    filled_by_lead: Dict[int, Set[int]],
    form_names: Dict[int, str],
) -> LeadQuality:
    """Score every lead with a form and aggregate per form and per bucket."""
    per_form: Dict[int, _FormScores] = {}
    buckets = {label: 0 for label in SCORE_BUCKET_LABELS}
    score_sum = 0.0
    score_count = 0

    for lead in leads:
        if lead.form_id is None:
            continue
        score = completeness_score(filled_by_lead.get(lead.id, set()), catalog.field_ids(lead.form_id))

        score_sum += score
        score_count += 1
        buckets[score_bucket(score)] += 1
        per_form.setdefault(lead.form_id, _FormScores()).add(score)

    ordered_form_ids: List[int] = [fid for fid in catalog.form_ids if fid in per_form]
    ordered_form_ids += [fid for fid in per_form if fid not in catalog.form_ids]

    form_quality = tuple(
        FormQuality(
            form_id=form_id,
            form_name=form_display_name(form_names, form_id),
            lead_count=per_form[form_id].count,
            avg_score=per_form[form_id].total / per_form[form_id].count,
            min_score=per_form[form_id].min_score,
            max_score=per_form[form_id].max_score,
        )
        for form_id in ordered_form_ids
    )

    distribution = tuple(
        BucketCount(bucket=label, lead_count=buckets[label])
        for label in SCORE_BUCKET_LABELS
        if buckets[label] > 0
    )

    global_avg = score_sum / score_count if score_count > 0 else 0.0
    logger.debug("Lead quality: %d scored leads, global avg %.2f", score_count, global_avg)

    return LeadQuality(per_form=form_quality, distribution=distribution, global_avg_score=global_avg)
