"""Core building blocks of the FlowKore client."""
