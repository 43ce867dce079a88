"""
Core monitoring package for Short-Form Blocker.

Contains the detection loop (core.monitor), overlay bookkeeping
(core.popup_manager), lifecycle guard, command interface and the
ShortFormBlocker that wires them together (core.blocker).
Zero UI dependencies.

Import submodules directly; screen.inspectors depends on core.targets,
so this package does not import its submodules eagerly.
"""
