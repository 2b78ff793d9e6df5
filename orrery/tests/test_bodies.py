"""Tests for the body catalog"""
import os
import tempfile
import unittest

from numpy.testing import assert_allclose

from orrery import CatalogError, KMPAU, OrbitalElements, bodies_data, hierarchy_order, load_bodies_data
from orrery.bodies import children_of, grouped_bodies


HEADER = "id,name_en,category,parent_id,semi_major_axis_au,eccentricity,period_years,period_days,mean_radius_km\n"


class TestBodies(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _write_catalog(self, rows):
        path = os.path.join(self._tmp.name, 'bodies.csv')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(HEADER)
            for row in rows:
                f.write(row + "\n")
        return path

    def test_packaged_catalog(self):
        sun = bodies_data['sun']
        self.assertIsNone(sun.parent_id)
        self.assertFalse(sun.has_motion)
        self.assertEqual(sun.category, 'star')

        earth = bodies_data['earth']
        self.assertEqual(earth.parent_id, 'sun')
        self.assertTrue(earth.has_motion)
        assert_allclose(earth.get_period('day'), 365.25, rtol=1e-4)

        # Moon periods are given in days in the catalog
        moon = bodies_data['moon']
        self.assertEqual(moon.parent_id, 'earth')
        assert_allclose(moon.period_years, 27.321661 / 365.25, rtol=1e-12)

    def test_every_body_has_a_narration_clip(self):
        for body in bodies_data.values():
            self.assertTrue(body.narration_clip, body.id)

    def test_hierarchy_order_puts_parents_first(self):
        order = hierarchy_order(bodies_data)
        self.assertEqual(sorted(order), sorted(bodies_data))
        position = {body_id: k for k, body_id in enumerate(order)}
        for body in bodies_data.values():
            if body.parent_id:
                self.assertLess(position[body.parent_id], position[body.id])

    def test_parent_listed_after_child(self):
        path = self._write_catalog([
            "moon,Moon,moon,earth,0.00257,0.05,,27.3,1737.4",
            "earth,Earth,planet,sun,1.0,0.0167,1.0,,6371.0",
            "sun,Sun,star,,,,,,695700",
        ])
        bodies = load_bodies_data(path)
        self.assertEqual(list(bodies), ['moon', 'earth', 'sun'])
        self.assertEqual(hierarchy_order(bodies), ['sun', 'earth', 'moon'])

    def test_cycle_is_rejected(self):
        path = self._write_catalog([
            "a,A,planet,b,1.0,0.0,1.0,,",
            "b,B,planet,a,2.0,0.0,2.8,,",
        ])
        with self.assertRaises(CatalogError):
            load_bodies_data(path)

    def test_unknown_parent_is_rejected(self):
        path = self._write_catalog(["a,A,planet,nowhere,1.0,0.0,1.0,,"])
        with self.assertRaises(CatalogError):
            load_bodies_data(path)

    def test_duplicate_id_is_rejected(self):
        path = self._write_catalog([
            "sun,Sun,star,,,,,,",
            "sun,Sun again,star,,,,,,",
        ])
        with self.assertRaises(CatalogError):
            load_bodies_data(path)

    def test_bad_number_is_rejected(self):
        path = self._write_catalog(["a,A,planet,,far,0.0,1.0,,"])
        with self.assertRaises(CatalogError):
            load_bodies_data(path)

    def test_hyperbolic_orbit_is_rejected(self):
        path = self._write_catalog(["a,A,comet,,1.0,1.2,1.0,,"])
        with self.assertRaises(CatalogError):
            load_bodies_data(path)

    def test_missing_orbit_data_degrades_to_static(self):
        path = self._write_catalog([
            "sun,Sun,star,,,,,,",
            "voyager,Voyager,artificial_satellite,sun,1.5,0.0,,,",
        ])
        bodies = load_bodies_data(path)
        self.assertFalse(bodies['voyager'].has_motion)
        assert_allclose(bodies['voyager'].orbit_position(3.0), [0.0, 0.0, 0.0])

    def test_unknown_category_renders_as_planet(self):
        path = self._write_catalog(["x,X,asteroid,,2.7,0.1,4.6,,470"])
        self.assertEqual(load_bodies_data(path)['x'].category, 'planet')

    def test_perihelion_longitude_conversion(self):
        """omega = varpi - Omega and M0 = L - varpi"""
        el = OrbitalElements.from_raw(
            semi_major_axis_au=1.0,
            eccentricity=0.0167,
            longitude_of_ascending_node_deg=-11.26064,
            longitude_of_perihelion_deg=102.94719,
            mean_longitude_deg=100.46435,
        )
        assert_allclose(el.argument_of_periapsis_deg, 114.20783, atol=1e-9)
        assert_allclose(el.mean_anomaly_deg, -2.48284, atol=1e-9)

    def test_explicit_elements_win_over_perihelion_form(self):
        el = OrbitalElements.from_raw(
            semi_major_axis_au=1.0,
            longitude_of_ascending_node_deg=10.0,
            argument_of_periapsis_deg=20.0,
            mean_anomaly_deg=30.0,
            longitude_of_perihelion_deg=99.0,
            mean_longitude_deg=199.0,
        )
        self.assertEqual(el.argument_of_periapsis_deg, 20.0)
        self.assertEqual(el.mean_anomaly_deg, 30.0)

    def test_visual_sizes(self):
        sun = bodies_data['sun']
        assert_allclose(sun.visual_radius_au(), 695700.0 / KMPAU * 300.0, rtol=1e-12)
        assert_allclose(sun.selection_zoom_distance(), sun.visual_radius_au() * 1.2, rtol=1e-12)

        # Small bodies are floored so they stay visible and selectable
        iss = bodies_data['iss']
        assert_allclose(iss.visual_radius_au(), 0.003)
        assert_allclose(iss.selection_zoom_distance(), 0.08)

    def test_small_targets(self):
        self.assertTrue(bodies_data['pluto'].is_small_target())
        self.assertTrue(bodies_data['phobos'].is_small_target())
        self.assertFalse(bodies_data['mercury'].is_small_target())
        self.assertFalse(bodies_data['jupiter'].is_small_target())

    def test_grouping(self):
        groups = grouped_bodies(bodies_data)
        self.assertEqual(list(groups)[0], 'star')
        self.assertEqual([b.id for b in groups['planet']][:3], ['mercury', 'venus', 'earth'])
        self.assertEqual([b.id for b in children_of(bodies_data, 'mars')], ['phobos', 'deimos'])


if __name__ == '__main__':
    unittest.main()
