"""
ROOFWATCH Services Package

Equipment Control
-----------------
- services.enclosure: Roll-off roof control (limit switches, motor relay,
  AC relay, park state)

Simulation
----------
- services.simulators: Roof simulator for running without hardware
"""
