"""Schelling's segregation model built on agentgrid."""
