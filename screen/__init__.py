"""
Screen package: OS automation bridge and the process/tab inspectors.
"""
