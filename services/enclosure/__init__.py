"""
ROOFWATCH Enclosure Package

Roll-off roof control:
- gpio: raw limit switch inputs and AC relay output
- sensor_reader: debounced limit switch states
- actuators: web relay motor control and AC relay
- roof_state_machine: park state reconciliation and motion rules
- poll_loop: periodic driver
- park_store: park state persistence
- roof_controller: host-facing owner that wires everything together
"""
