"""Track geometry projection.

Turns a geographic circuit outline into drawable 2D paths on a fixed
virtual canvas and maps lap-fraction scalars onto those paths.
"""
