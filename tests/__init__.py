"""Test suite for rpcbench."""
