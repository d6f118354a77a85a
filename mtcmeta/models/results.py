"""
Posterior summaries of a fitted network meta-analysis model.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple

from mtcmeta.core.network import Treatment
from mtcmeta.core.parameters import Estimate, InconsistencyParameter
from mtcmeta.exceptions import ParameterNotFoundError
from mtcmeta.utils import format_estimate


@dataclass
class MTCResults:
    """
    Snapshot of the estimates produced by ``MTCModel.run``.

    Relative effects are stored once per recorded orientation; the reverse
    orientation is derived by negating the mean and keeping the standard
    deviation.

    Attributes:
        relative_effects: Estimate per (base, subject) pair, covering the
            basic parameters and every other connected pair
        inconsistency: Estimate per inconsistency parameter, in parameter order
        sigma: Heterogeneity standard deviation
        sigmaw: Inconsistency standard deviation (exactly zero when
            inconsistency is not modeled)
        inconsistency_model: Whether inconsistency parameters were sampled
        burn_in_iterations: Number of burn-in sweeps
        simulation_iterations: Number of recorded sweeps
        acceptance_rates: Mean Metropolis acceptance rate per sampled vector
            during simulation
        prior_specs: Priors used in the model
        warnings: Any warnings generated during the run
    """

    relative_effects: Dict[Tuple[Treatment, Treatment], Estimate] = field(default_factory=dict)
    inconsistency: Dict[InconsistencyParameter, Estimate] = field(default_factory=dict)
    sigma: Estimate = Estimate(0.0, 0.0)
    sigmaw: Estimate = Estimate(0.0, 0.0)
    inconsistency_model: bool = False
    burn_in_iterations: int = 0
    simulation_iterations: int = 0
    acceptance_rates: Dict[str, float] = field(default_factory=dict)
    prior_specs: Optional[Dict[str, Any]] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def treatments(self) -> List[Treatment]:
        """Treatments appearing in any recorded relative effect."""
        found = set()
        for a, b in self.relative_effects:
            found.update((a, b))
        return sorted(found)

    @property
    def inconsistency_factors(self) -> List[InconsistencyParameter]:
        return list(self.inconsistency)

    def relative_effect(self, base: Treatment, subject: Treatment) -> Estimate:
        """
        Estimate of the effect of ``subject`` relative to ``base``.

        Raises:
            ParameterNotFoundError: if the treatments are not connected
        """
        if (base, subject) in self.relative_effects:
            return self.relative_effects[(base, subject)]
        if (subject, base) in self.relative_effects:
            return self.relative_effects[(subject, base)].negated()
        raise ParameterNotFoundError(
            f"No relative effect of {subject} versus {base}; "
            "the treatments are not connected in the fitted model"
        )

    def inconsistency_factor(self, parameter: InconsistencyParameter) -> Estimate:
        if parameter not in self.inconsistency:
            raise ParameterNotFoundError(f"Unknown inconsistency parameter {parameter}")
        return self.inconsistency[parameter]

    def summary_table(self, exponentiate: bool = False) -> str:
        """Generate summary table as string."""
        lines = [
            "=" * 60,
            "Network Meta-Analysis Results",
            "=" * 60,
            "",
            f"Model: {'inconsistency' if self.inconsistency_model else 'consistency'}",
            f"Burn-in: {self.burn_in_iterations}, simulation: {self.simulation_iterations}",
            "",
            "Relative Effects:",
        ]

        for (base, subject), est in self.relative_effects.items():
            line = f"  {subject.id} vs {base.id}: " + format_estimate(
                est.mean, est.sd, est.interval(), decimals=4
            )
            if exponentiate:
                line += "  exp: " + format_estimate(
                    est.mean, ci=est.interval(), decimals=4, exponentiate=True
                )
            lines.append(line)
        lines.append("")

        if self.inconsistency:
            lines.append("Inconsistency Factors:")
            for param, est in self.inconsistency.items():
                lines.append(f"  {param.name}: {est.mean:.4f} (SD: {est.sd:.4f})")
            lines.append("")

        lines.extend([
            "Variance Parameters:",
            f"  sigma: {self.sigma.mean:.4f} (SD: {self.sigma.sd:.4f})",
        ])
        if self.inconsistency_model:
            lines.append(f"  sigmaw: {self.sigmaw.mean:.4f} (SD: {self.sigmaw.sd:.4f})")
        lines.append("")

        if self.acceptance_rates:
            lines.append("Acceptance Rates:")
            for name, rate in self.acceptance_rates.items():
                lines.append(f"  {name}: {rate:.3f}")
            lines.append("")

        if self.warnings:
            lines.append("Warnings:")
            for w in self.warnings:
                lines.append(f"  - {w}")
            lines.append("")

        lines.append("=" * 60)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "relative_effects": [
                {"base": a.id, "subject": b.id, "mean": e.mean, "sd": e.sd}
                for (a, b), e in self.relative_effects.items()
            ],
            "inconsistency": {p.name: {"mean": e.mean, "sd": e.sd} for p, e in self.inconsistency.items()},
            "sigma": {"mean": self.sigma.mean, "sd": self.sigma.sd},
            "sigmaw": {"mean": self.sigmaw.mean, "sd": self.sigmaw.sd},
            "inconsistency_model": self.inconsistency_model,
            "burn_in_iterations": self.burn_in_iterations,
            "simulation_iterations": self.simulation_iterations,
            "acceptance_rates": dict(self.acceptance_rates),
            "prior_specs": self.prior_specs,
            "warnings": list(self.warnings),
        }

    def to_dataframe(self):
        """
        Convert the estimates to a pandas DataFrame.

        Returns:
            DataFrame with one row per relative effect, inconsistency factor
            and variance parameter
        """
        try:
            import pandas as pd
        except ImportError:
            raise ImportError("pandas is required for to_dataframe()")

        records = []
        for (base, subject), est in self.relative_effects.items():
            lower, upper = est.interval()
            records.append({
                "parameter": f"d.{base.id}.{subject.id}",
                "kind": "relative_effect",
                "base": base.id,
                "subject": subject.id,
                "mean": est.mean,
                "sd": est.sd,
                "ci_lower": lower,
                "ci_upper": upper,
            })
        for param, est in self.inconsistency.items():
            lower, upper = est.interval()
            records.append({
                "parameter": param.name,
                "kind": "inconsistency",
                "base": None,
                "subject": None,
                "mean": est.mean,
                "sd": est.sd,
                "ci_lower": lower,
                "ci_upper": upper,
            })
        for name, est in (("sigma", self.sigma), ("sigmaw", self.sigmaw)):
            records.append({
                "parameter": name,
                "kind": "variance",
                "base": None,
                "subject": None,
                "mean": est.mean,
                "sd": est.sd,
                "ci_lower": None,
                "ci_upper": None,
            })

        return pd.DataFrame(records)
