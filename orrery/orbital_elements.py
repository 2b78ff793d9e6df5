"""
Orbital elements representation for celestial bodies.
"""
from typing import NamedTuple, Optional


class OrbitalElements(NamedTuple):
    """
    Keplerian orbital elements of a body relative to its parent.

    Angles are stored in degrees, exactly as they appear in the catalog.
    Any element may be missing (None); missing eccentricity and angles are
    treated as 0 by the position solver.

    Attributes:
        semi_major_axis_au: Semi-major axis (AU)
        eccentricity: Eccentricity (dimensionless, 0 ≤ e < 1)
        inclination_deg: Inclination relative to the reference plane (deg)
        longitude_of_ascending_node_deg: Longitude of the ascending node (deg)
        argument_of_periapsis_deg: Argument of periapsis (deg)
        mean_anomaly_deg: Mean anomaly at epoch t=0 (deg)

    Note:
        - Only elliptical orbits are supported: 0 ≤ e < 1
        - Without a semi-major axis the body does not move
    """
    semi_major_axis_au: Optional[float] = None
    eccentricity: Optional[float] = None
    inclination_deg: Optional[float] = None
    longitude_of_ascending_node_deg: Optional[float] = None
    argument_of_periapsis_deg: Optional[float] = None
    mean_anomaly_deg: Optional[float] = None

    @classmethod
    def from_raw(
        cls,
        semi_major_axis_au: Optional[float] = None,
        eccentricity: Optional[float] = None,
        inclination_deg: Optional[float] = None,
        longitude_of_ascending_node_deg: Optional[float] = None,
        argument_of_periapsis_deg: Optional[float] = None,
        mean_anomaly_deg: Optional[float] = None,
        longitude_of_perihelion_deg: Optional[float] = None,
        mean_longitude_deg: Optional[float] = None,
    ) -> 'OrbitalElements':
        """
        Build elements from a raw record that may use the perihelion-longitude form.

        Planetary tables often give the longitude of perihelion (varpi) and the
        mean longitude (L) instead of omega and M0:

            omega = varpi - Omega
            M0 = L - varpi
        """
        omega = argument_of_periapsis_deg
        if omega is None and longitude_of_perihelion_deg is not None \
                and longitude_of_ascending_node_deg is not None:
            omega = longitude_of_perihelion_deg - longitude_of_ascending_node_deg

        M0 = mean_anomaly_deg
        if M0 is None and mean_longitude_deg is not None and longitude_of_perihelion_deg is not None:
            M0 = mean_longitude_deg - longitude_of_perihelion_deg

        return cls(
            semi_major_axis_au=semi_major_axis_au,
            eccentricity=eccentricity,
            inclination_deg=inclination_deg,
            longitude_of_ascending_node_deg=longitude_of_ascending_node_deg,
            argument_of_periapsis_deg=omega,
            mean_anomaly_deg=M0,
        )

    def as_row(self) -> tuple:
        """Elements with missing values filled with 0, in solver order (a, e, i, Omega, omega, M0)."""
        return tuple(0.0 if value is None else float(value) for value in self)
