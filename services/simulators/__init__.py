"""
ROOFWATCH Simulators Package

Hardware stand-ins for running the roof controller without a real roof:
- RoofSimulator: motor travel and NC limit switches on the mock GPIO backend
- SimulatedMotionActuator: motion relay that drives the simulator
"""

from services.simulators.roof_simulator import (
    RoofSimulator,
    SimulatedMotionActuator,
)

__all__ = [
    "RoofSimulator",
    "SimulatedMotionActuator",
]
