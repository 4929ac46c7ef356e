"""ECG Signal Lab - Main Entry Point

Batch tool for filtering ECG traces, detecting R-peaks and estimating heart rate.
"""
from ecg_signal_lab.app import main

if __name__ == "__main__":
    main()
