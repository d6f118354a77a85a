"""
Shared pytest fixtures for mtcmeta tests.
"""

import pytest

from mtcmeta.core.network import (
    Treatment, DichotomousMeasurement, ContinuousMeasurement, Study, Network
)


A = Treatment("A", "Placebo")
B = Treatment("B")
C = Treatment("C")
D = Treatment("D")
E = Treatment("E")


def dich(responders, sample_size):
    return DichotomousMeasurement(responders, sample_size)


def cont(mean, std_err):
    return ContinuousMeasurement(mean, std_err)


@pytest.fixture
def treatments():
    """Treatments A to E."""
    return A, B, C, D, E


@pytest.fixture
def two_arm_network():
    """Two studies comparing A and B."""
    return Network.from_studies([
        Study("s1", {A: dich(10, 100), B: dich(20, 100)}),
        Study("s2", {A: dich(15, 100), B: dich(25, 100)}),
    ])


@pytest.fixture
def triangle_network():
    """Three two-arm studies forming the triangle A-B, B-C, A-C."""
    return Network.from_studies([
        Study("s1", {A: dich(10, 100), B: dich(20, 100)}),
        Study("s2", {B: dich(18, 100), C: dich(30, 100)}),
        Study("s3", {A: dich(12, 100), C: dich(33, 100)}),
    ])


@pytest.fixture
def weighted_triangle_network():
    """Triangle in which B-C is supported by three studies."""
    return Network.from_studies([
        Study("s1", {A: dich(10, 100), B: dich(20, 100)}),
        Study("s2", {A: dich(12, 100), C: dich(33, 100)}),
        Study("s3", {B: dich(18, 100), C: dich(30, 100)}),
        Study("s4", {B: dich(22, 100), C: dich(29, 100)}),
        Study("s5", {B: dich(19, 100), C: dich(35, 100)}),
    ])


@pytest.fixture
def square_network():
    """Four two-arm studies forming the cycle A-B-C-D-A."""
    return Network.from_studies([
        Study("s1", {A: dich(10, 100), B: dich(20, 100)}),
        Study("s2", {B: dich(18, 100), C: dich(30, 100)}),
        Study("s3", {C: dich(28, 100), D: dich(40, 100)}),
        Study("s4", {A: dich(11, 100), D: dich(38, 100)}),
    ])


@pytest.fixture
def disconnected_network():
    """Two components: A-B and C-D."""
    return Network.from_studies([
        Study("s1", {A: dich(10, 100), B: dich(20, 100)}),
        Study("s2", {C: dich(18, 100), D: dich(30, 100)}),
    ])


@pytest.fixture
def multi_arm_network():
    """A three-arm study plus two-arm studies, with one cycle outside the three-arm study."""
    return Network.from_studies([
        Study("s1", {A: dich(10, 100), B: dich(20, 100), C: dich(25, 100)}),
        Study("s2", {A: dich(12, 100), B: dich(21, 100)}),
        Study("s3", {C: dich(24, 100), D: dich(35, 100)}),
        Study("s4", {B: dich(19, 100), D: dich(36, 100)}),
    ])


@pytest.fixture
def continuous_network():
    """Continuous outcomes on the triangle A-B, B-C, A-C."""
    return Network.from_studies([
        Study("s1", {A: cont(1.0, 0.5), B: cont(2.0, 0.5)}),
        Study("s2", {B: cont(2.5, 0.4), C: cont(4.0, 0.4)}),
        Study("s3", {A: cont(1.5, 0.6), C: cont(3.0, 0.6)}),
    ])
