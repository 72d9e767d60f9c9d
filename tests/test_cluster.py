"""Tests for hotspot clustering and cluster normalization."""

import pytest

from initial_attack.cluster import (
    DEFAULT_FIRMS_RESOURCES,
    build_cluster,
    cluster_hotspots,
    cluster_name,
    cluster_to_incident,
    dbscan_labels,
    infer_fuel_from_latitude,
)
from initial_attack.models import FirmsHotspot


def _hotspot(lat, lon, frp=1.0, **kwargs):
    return FirmsHotspot(
        latitude=lat,
        longitude=lon,
        brightness=kwargs.pop("brightness", 320.0),
        frp=frp,
        acq_date=kwargs.pop("acq_date", "2026-02-13"),
        acq_time=kwargs.pop("acq_time", "1200"),
        **kwargs,
    )


class TestDbscanLabels:
    def test_empty(self):
        assert dbscan_labels([]) == []

    def test_chain_joins_into_one_cluster(self):
        # 1 km steps: each point only reaches its neighbours.
        points = [_hotspot(37.0 + 0.009 * i, -120.0) for i in range(4)]
        assert len(set(dbscan_labels(points))) == 1

    def test_far_points_get_separate_labels(self):
        points = [_hotspot(37.0, -120.0), _hotspot(38.0, -120.0)]
        assert sorted(dbscan_labels(points)) == [0, 1]

    def test_noise_becomes_singletons(self):
        points = [_hotspot(37.0, -120.0), _hotspot(37.005, -120.0), _hotspot(38.0, -120.0)]
        labels = dbscan_labels(points, min_points=2)
        assert labels[0] == labels[1]
        assert labels[2] not in (labels[0],)
        assert all(label >= 0 for label in labels)


class TestClusterHotspots:
    def test_empty_input(self):
        assert cluster_hotspots([]) == []

    def test_single_hotspot_singleton(self):
        clusters = cluster_hotspots([_hotspot(37.0, -120.0, frp=4.0)])
        assert len(clusters) == 1
        assert clusters[0].point_count == 1
        assert clusters[0].radius_meters >= 475
        assert clusters[0].id == "firms_cluster_0"

    def test_sorted_by_total_frp(self, sample_hotspots):
        clusters = cluster_hotspots(sample_hotspots)
        assert len(clusters) == 2
        totals = [c.total_frp for c in clusters]
        assert totals == sorted(totals, reverse=True)
        assert clusters[0].point_count == 1
        assert clusters[1].point_count == 2

    def test_ids_follow_sorted_order(self, sample_hotspots):
        clusters = cluster_hotspots(sample_hotspots)
        assert [c.id for c in clusters] == ["firms_cluster_0", "firms_cluster_1"]

    def test_far_outlier_kept(self, sample_hotspots):
        far = _hotspot(41.0, -116.0, frp=0.1)
        clusters = cluster_hotspots(sample_hotspots + [far])
        assert len(clusters) == 3
        assert clusters[-1].hotspots == (far,)

    def test_eps_controls_merging(self, sample_hotspots):
        assert len(cluster_hotspots(sample_hotspots, eps_meters=100)) == 3
        assert len(cluster_hotspots(sample_hotspots, eps_meters=50_000)) == 1

    def test_deterministic(self, sample_hotspots):
        assert cluster_hotspots(sample_hotspots) == cluster_hotspots(sample_hotspots)


class TestBuildCluster:
    def test_summary_fields(self, sample_hotspots):
        members = sample_hotspots[:2]
        cluster = build_cluster("c", members)
        assert cluster.centroid_lat == pytest.approx((37.400 + 37.4027) / 2)
        assert cluster.centroid_lon == pytest.approx(-122.100)
        assert cluster.max_frp == 7.5
        assert cluster.max_brightness == 345.0
        assert cluster.total_frp == pytest.approx(12.5)
        assert cluster.last_seen.startswith("2026-02-13T10:42")

    def test_radius_adds_pixel_half_width(self, sample_hotspots):
        cluster = build_cluster("c", sample_hotspots[:2])
        # ~150 m from centroid to each member, plus 375 m
        assert 515 <= cluster.radius_meters <= 535


class TestClusterToIncident:
    def test_incident_fields(self, sample_hotspots):
        cluster = cluster_hotspots(sample_hotspots)[1]
        incident = cluster_to_incident(cluster, 1)
        assert incident.id == "firms_cluster_1"
        assert incident.lat == cluster.centroid_lat
        assert incident.perimeter.radius_meters == cluster.radius_meters
        assert incident.fuel_proxy == "mixed"
        assert "2 satellite detections" in incident.notes

    def test_name_format(self, sample_hotspots):
        cluster = cluster_hotspots(sample_hotspots)[0]
        assert cluster_name(cluster, 0) == "1 Detection 1 (37.58N, 122.10W)"

    def test_default_resources(self):
        assert DEFAULT_FIRMS_RESOURCES.engines_available == 2
        assert DEFAULT_FIRMS_RESOURCES.air_support_available is False


class TestInferFuelFromLatitude:
    @pytest.mark.parametrize(
        "lat, lon, fuel",
        [
            (34.0, -118.0, "chaparral"),
            (36.8, -119.7, "grass"),
            (37.4, -122.1, "mixed"),
            (40.0, -121.5, "mixed"),
        ],
    )
    def test_bands(self, lat, lon, fuel):
        assert infer_fuel_from_latitude(lat, lon) == fuel
