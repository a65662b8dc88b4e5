"""ccrun - build/run command orchestrator for C and MPI toolchains."""

__version__ = "0.3.0"
