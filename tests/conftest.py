"""Shared fixtures for the reconciliation test suite."""

import pytest

from clause_reconciliation.models import ClauseGroup, RiskLevel, Template, Variant


@pytest.fixture
def xyz_group():
    """Clause group with variants X, Y and Z."""
    return ClauseGroup(
        id="g1",
        label="Group One",
        variants=(
            Variant(id="X", label="Variant X"),
            Variant(id="Y", label="Variant Y"),
            Variant(id="Z", label="Variant Z"),
        ),
    )


@pytest.fixture
def nda_catalog_dict():
    """NDA template in catalog JSON form."""
    return {
        "version": 1,
        "templates": [
            {
                "id": "nda",
                "name": "Non-Disclosure Agreement",
                "clause_groups": [
                    {
                        "id": "nature",
                        "label": "Nature of NDA",
                        "category": "structure",
                        "variants": [
                            {
                                "id": "mutual_standard",
                                "label": "Standard Mutual",
                                "legal_text": "Each party may disclose Confidential Information to the other.",
                                "risk_level": "low",
                            },
                            {"id": "mutual_flexible", "label": "Flexible Mutual with Carveouts"},
                            {"id": "unilateral", "label": "Unilateral Discloser-Only", "risk_level": "high"},
                        ],
                    },
                    {
                        "id": "definitions",
                        "label": "Definitions",
                        "variants": [
                            {"id": "comprehensive", "label": "Comprehensive"},
                            {"id": "lean", "label": "Lean Definitions"},
                            {"id": "minimal", "label": "Minimal Definitions"},
                        ],
                    },
                    {
                        "id": "obligations",
                        "label": "Confidentiality Obligations",
                        "variants": [
                            {"id": "balanced", "label": "Mutual Balanced"},
                            {"id": "strict", "label": "Strict Mutual (Enhanced Care Standard)"},
                            {"id": "recipient", "label": "Unilateral Recipient Obligations"},
                        ],
                    },
                ],
            }
        ],
    }


@pytest.fixture
def nda_template():
    """The NDA template as catalog objects."""
    return Template(
        id="nda",
        name="Non-Disclosure Agreement",
        clause_groups=(
            ClauseGroup(
                id="nature",
                label="Nature of NDA",
                category="structure",
                variants=(
                    Variant(
                        id="mutual_standard",
                        label="Standard Mutual",
                        legal_text="Each party may disclose Confidential Information to the other.",
                        risk_level=RiskLevel.LOW,
                    ),
                    Variant(id="mutual_flexible", label="Flexible Mutual with Carveouts"),
                    Variant(id="unilateral", label="Unilateral Discloser-Only", risk_level=RiskLevel.HIGH),
                ),
            ),
            ClauseGroup(
                id="definitions",
                label="Definitions",
                variants=(
                    Variant(id="comprehensive", label="Comprehensive"),
                    Variant(id="lean", label="Lean Definitions"),
                    Variant(id="minimal", label="Minimal Definitions"),
                ),
            ),
            ClauseGroup(
                id="obligations",
                label="Confidentiality Obligations",
                variants=(
                    Variant(id="balanced", label="Mutual Balanced"),
                    Variant(id="strict", label="Strict Mutual (Enhanced Care Standard)"),
                    Variant(id="recipient", label="Unilateral Recipient Obligations"),
                ),
            ),
        ),
    )
