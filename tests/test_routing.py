import unittest
from routewise.routing import (
    DEFAULT_AVERAGE_SPEED_MPS,
    compute_haversine_matrix,
    estimated_duration,
    haversine_distance,
    route_distance,
)


class TestRouting(unittest.TestCase):
    def test_haversine_distance(self):
        # distance between Tokyo Tower and Tokyo Station (~2.9 km)
        tokyo_tower = (35.6586, 139.7454)
        tokyo_station = (35.6812, 139.7671)
        dist = haversine_distance(tokyo_tower, tokyo_station)
        self.assertAlmostEqual(dist, 2.9, delta=0.5)

    def test_haversine_symmetric_and_zero(self):
        pairs = [
            ((0, 0), (0, 1)),
            ((37.7749, -122.4194), (38.4404, -122.7141)),
            ((-33.8688, 151.2093), (51.5074, -0.1278)),
            ((89.9, 10), (-89.9, -170)),
        ]
        for a, b in pairs:
            self.assertAlmostEqual(haversine_distance(a, b), haversine_distance(b, a), places=9)
            self.assertEqual(haversine_distance(a, a), 0.0)

    def test_triangle_inequality(self):
        a, b, c = (37.7749, -122.4194), (37.3382, -121.8863), (37.8715, -122.2730)
        self.assertLessEqual(
            haversine_distance(a, c),
            haversine_distance(a, b) + haversine_distance(b, c) + 1e-9,
        )

    def test_estimated_duration(self):
        # 15.6 km at 15.6 m/s is 1000 seconds
        self.assertAlmostEqual(estimated_duration(15.6), 1000.0)
        self.assertAlmostEqual(estimated_duration(1.0, average_speed_mps=10.0), 100.0)
        self.assertEqual(estimated_duration(0.0), 0.0)
        with self.assertRaises(ValueError):
            estimated_duration(1.0, average_speed_mps=0)

    def test_route_distance(self):
        coords = [(0, 0), (0, 1), (0, 2)]
        expected = haversine_distance((0, 0), (0, 1)) + haversine_distance((0, 1), (0, 2))
        self.assertAlmostEqual(route_distance(coords), expected)
        self.assertEqual(route_distance(coords[:1]), 0.0)
        self.assertEqual(route_distance([]), 0.0)

    def test_haversine_matrix(self):
        coords = [
            (0, 0),
            (0, 1),
            (1, 0),
        ]
        dist_matrix, dur_matrix = compute_haversine_matrix(coords, average_speed_mps=60 / 3.6)
        # Distance from (0,0) to (0,1) ~111 km
        self.assertAlmostEqual(dist_matrix[0][1], 111, delta=2)
        self.assertEqual(dist_matrix[0][1], dist_matrix[1][0])
        self.assertEqual(dist_matrix[2][2], 0.0)
        # Duration at 60 km/h should be ~1.85 h = 6660 s
        self.assertAlmostEqual(dur_matrix[0][1], 111/60*3600, delta=300)

    def test_haversine_matrix_default_speed(self):
        _, dur_matrix = compute_haversine_matrix([(0, 0), (0, 1)])
        expected = haversine_distance((0, 0), (0, 1)) * 1000 / DEFAULT_AVERAGE_SPEED_MPS
        self.assertAlmostEqual(dur_matrix[0][1], expected)


if __name__ == "__main__":
    unittest.main()
