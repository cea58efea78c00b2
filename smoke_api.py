import requests
import time

BASE_URL = "http://127.0.0.1:8001/api"

def run_test():
    print("--- Smoke Testing Ramp Merge API ---")

    # 1. Start a run
    print("\nStarting run with 60 vehicles...")
    try:
        requests.post(f"{BASE_URL}/simulation/start", json={"vehicleCount": 60})
    except requests.RequestException as e:
        print(f"Error connecting to server: {e}")
        return

    time.sleep(1)

    # 2. Hold the ramp entry
    print("Setting rampEntry RED...")
    requests.post(f"{BASE_URL}/signals/rampEntry", json={"state": "RED"})
    time.sleep(0.5)

    signals = requests.get(f"{BASE_URL}/signals").json()
    if signals.get("rampEntry") == "RED":
        print("PASS: rampEntry is RED.")
    else:
        print(f"FAIL: Unexpected signals {signals}")

    # 3. Watch the run progress
    samples = []
    for i in range(5):
        state = requests.get(f"{BASE_URL}/simulation/state").json()
        print(f"t={state['time']:.1f}s active={state['activeVehicleCount']} congestion={state['congestion']:.0f}%")
        samples.append(state["time"])
        time.sleep(1.0)

    if len(set(samples)) > 1:
        print("PASS: Simulation time is advancing.")
    else:
        print("FAIL: Simulation appears stalled.")

    requests.post(f"{BASE_URL}/signals/rampEntry", json={"state": "GREEN"})

if __name__ == "__main__":
    run_test()
