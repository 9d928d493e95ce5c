"""
Interface package: communication protocols for the chess engine.

Modules:
    uci — Universal Chess Interface (UCI) protocol handler.
          Reads commands from stdin, writes responses to stdout.
          Playing strength is set with "setoption name Difficulty value <level>".
          Can be run as a standalone script: python interface/uci.py
"""
