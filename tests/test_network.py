"""
Tests for treatments, measurements, studies and networks.
"""

import pytest

from mtcmeta.core.network import (
    MeasurementType, Treatment, DichotomousMeasurement, ContinuousMeasurement, Study, Network
)
from mtcmeta.exceptions import ConfigurationError


A, B, C, D = (Treatment(t) for t in "ABCD")


class TestTreatment:
    """Test Treatment identity and ordering."""

    def test_ordered_by_id(self):
        assert Treatment("A") < Treatment("B")
        assert sorted([C, A, B]) == [A, B, C]

    def test_description_ignored_for_equality(self):
        assert Treatment("A", "Placebo") == Treatment("A")
        assert hash(Treatment("A", "Placebo")) == hash(Treatment("A"))

    def test_empty_id_rejected(self):
        with pytest.raises(ConfigurationError):
            Treatment("")


class TestMeasurements:
    """Test measurement validation."""

    def test_dichotomous_valid(self):
        m = DichotomousMeasurement(5, 10)
        assert m.kind is MeasurementType.DICHOTOMOUS

    def test_responders_above_sample_size(self):
        with pytest.raises(ConfigurationError):
            DichotomousMeasurement(11, 10)

    def test_zero_sample_size(self):
        with pytest.raises(ConfigurationError):
            DichotomousMeasurement(0, 0)

    def test_continuous_requires_positive_std_err(self):
        with pytest.raises(ConfigurationError):
            ContinuousMeasurement(1.0, 0.0)
        assert ContinuousMeasurement(1.0, 0.5).kind is MeasurementType.CONTINUOUS


class TestStudy:
    """Test Study construction."""

    def test_needs_two_treatments(self):
        with pytest.raises(ConfigurationError):
            Study("s1", {A: DichotomousMeasurement(1, 10)})

    def test_mixed_measurements_rejected(self):
        with pytest.raises(ConfigurationError):
            Study("s1", {A: DichotomousMeasurement(1, 10), B: ContinuousMeasurement(1.0, 1.0)})

    def test_treatments_and_lookup(self):
        study = Study("s1", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)})
        assert study.treatments == frozenset({A, B})
        assert study.includes(A, B)
        assert not study.includes(A, C)
        assert study.measurement(B).responders == 2
        with pytest.raises(KeyError):
            study.measurement(C)

    def test_measurements_are_read_only(self):
        study = Study("s1", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)})
        with pytest.raises(TypeError):
            study.measurements[C] = DichotomousMeasurement(3, 10)

    def test_identity_by_id(self):
        s1 = Study("s1", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)})
        s2 = Study("s1", {A: DichotomousMeasurement(3, 10), C: DichotomousMeasurement(4, 10)})
        assert s1 == s2
        assert "s1" in repr(s1)


class TestNetwork:
    """Test Network construction and queries."""

    def test_sorted_studies_and_treatments(self, triangle_network):
        assert [s.id for s in triangle_network.studies] == ["s1", "s2", "s3"]
        assert triangle_network.treatments == (A, B, C)
        assert triangle_network.measurement_type is MeasurementType.DICHOTOMOUS
        assert triangle_network.is_dichotomous

    def test_studies_given_out_of_order(self):
        network = Network.from_studies([
            Study("z", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)}),
            Study("a", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)}),
        ])
        assert [s.id for s in network.studies] == ["a", "z"]

    def test_empty_network(self):
        with pytest.raises(ConfigurationError):
            Network.from_studies([])

    def test_duplicate_study_ids(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            Network.from_studies([
                Study("s1", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)}),
                Study("s1", {A: DichotomousMeasurement(1, 10), C: DichotomousMeasurement(2, 10)}),
            ])

    def test_mixed_measurement_types(self):
        with pytest.raises(ConfigurationError):
            Network.from_studies([
                Study("s1", {A: DichotomousMeasurement(1, 10), B: DichotomousMeasurement(2, 10)}),
                Study("s2", {A: ContinuousMeasurement(1.0, 1.0), C: ContinuousMeasurement(2.0, 1.0)}),
            ])

    def test_comparisons(self, triangle_network):
        assert triangle_network.comparisons() == [(A, B), (A, C), (B, C)]

    def test_treatment_graph(self, weighted_triangle_network):
        graph = weighted_triangle_network.treatment_graph()
        assert set(graph.nodes) == {A, B, C}
        assert graph.edges[B, C]["studies"] == ["s3", "s4", "s5"]
        assert graph.edges[A, B]["studies"] == ["s1"]

    def test_connectivity(self, triangle_network, disconnected_network):
        assert triangle_network.is_connected()
        assert not disconnected_network.is_connected()

    def test_lookups(self, triangle_network):
        assert triangle_network.get_treatment("B") == B
        assert triangle_network.get_study("s2").includes(B, C)
        assert [s.id for s in triangle_network.studies_including(A)] == ["s1", "s3"]
        with pytest.raises(KeyError):
            triangle_network.get_treatment("Z")
        with pytest.raises(KeyError):
            triangle_network.get_study("missing")

    def test_summary(self, disconnected_network):
        summary = disconnected_network.summary()
        assert summary["n_studies"] == 2
        assert summary["n_treatments"] == 4
        assert summary["n_comparisons"] == 2
        assert summary["measurement_type"] == "dichotomous"
        assert summary["connected"] is False
