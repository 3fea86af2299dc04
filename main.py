"""
HandSignal - hand gesture and pointer signal from a webcam.

Entry point for the application.
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="HandSignal - hand gesture and pointer signal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--mode",
        choices=["monitor", "debug", "headless"],
        default="monitor",
        help="monitor: Qt window, debug: OpenCV preview, headless: console (default: monitor)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.yaml)",
    )

    parser.add_argument(
        "--model",
        type=Path,
        default=None,
        help="Path to hand_landmarker.task (overrides config)",
    )

    parser.add_argument(
        "--tick-rate",
        type=int,
        default=None,
        help="Scheduler ticks per second (overrides config)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (overrides config)",
    )

    return parser.parse_args()


def print_status(status, message=None):
    suffix = f": {message}" if message else ""
    print(f"Camera {status.value}{suffix}")


def run_debug(config):
    """
    Run with an OpenCV preview window showing landmarks.
    The window's key polling loop is the tick cadence.
    """
    import cv2
    from handsignal import HandPipeline, InitializationError

    pipeline = HandPipeline(config)
    pipeline.on_status_change(print_status)

    print("Starting debug mode...")
    print("Press 'q' to quit")
    print("-" * 40)

    try:
        if not pipeline.start():
            return 1
    except InitializationError as e:
        print(f"ERROR: {e}")
        return 1

    last_gesture = None
    try:
        while pipeline.tick():
            data = pipeline.scheduler.last_data
            frame = pipeline.tracker.get_frame_with_landmarks()

            if frame is not None and data is not None:
                cv2.putText(
                    frame, f"Gesture: {data.gesture.name}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 1, (0, 255, 0), 2
                )
                if data.detected:
                    cv2.putText(
                        frame, f"Position: ({data.x:.2f}, {data.y:.2f})", (10, 60),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1
                    )
                cv2.imshow("HandSignal Debug", frame)

            if data is not None and data.gesture != last_gesture:
                print(f"[{pipeline.scheduler.ticks_processed:5d}] {data.gesture.name}")
                last_gesture = data.gesture

            # Check for quit
            if cv2.waitKey(1) & 0xFF == ord('q'):
                pipeline.stop()
    finally:
        pipeline.close()
        cv2.destroyAllWindows()

    return 0


def run_headless(config):
    """Print confirmed gesture changes to the console until Ctrl+C."""
    import signal
    from handsignal import HandPipeline, InitializationError

    pipeline = HandPipeline(config)
    pipeline.on_status_change(print_status)

    last = [None]  # Use list for mutability in closure

    def handle_hand_data(data):
        if data.gesture != last[0]:
            last[0] = data.gesture
            position = f" at ({data.x:.2f}, {data.y:.2f})" if data.detected else ""
            print(f"Gesture: {data.gesture.name}{position}")

    pipeline.on_hand_data(handle_hand_data)

    def signal_handler(signum, frame):
        print(f"\nReceived signal {signum}, shutting down...")
        pipeline.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        if not pipeline.start():
            return 1
        pipeline.run()
    except InitializationError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        pipeline.close()

    return 0


def run_monitor(config):
    """Run the Qt monitor window with the pipeline in a background thread."""
    import signal
    import atexit
    from PyQt5.QtWidgets import QApplication
    from PyQt5.QtCore import QThread, Qt
    from handsignal.worker import PipelineWorker
    from monitor import MonitorWindow

    app = QApplication(sys.argv)

    window = MonitorWindow(config.ui.window_width, config.ui.window_height)
    window.show()

    # Setup background worker and thread
    thread = QThread()
    worker = PipelineWorker(config)
    worker.moveToThread(thread)

    def cleanup():
        """Ensure camera is released on exit."""
        print("\nCleaning up camera resources...")
        worker.stop_process()
        thread.quit()
        thread.wait(2000)
        worker.shutdown()
        print("Cleanup complete.")

    atexit.register(cleanup)

    def signal_handler(signum, frame):
        """Handle Ctrl+C and kill signals gracefully."""
        print(f"\nReceived signal {signum}, shutting down...")
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # start_process blocks the worker thread until stopped, so start is queued
    # into that thread while stop only flips a flag from the GUI thread
    window.start_requested.connect(lambda: window.set_running(True))
    window.start_requested.connect(worker.start_process, Qt.QueuedConnection)
    window.stop_requested.connect(worker.stop_process, Qt.DirectConnection)

    worker.hand_data.connect(window.set_hand_data, Qt.QueuedConnection)
    worker.status_changed.connect(window.set_status, Qt.QueuedConnection)
    worker.frame_ready.connect(window.set_webcam_frame, Qt.QueuedConnection)
    worker.error.connect(window.set_error, Qt.QueuedConnection)
    worker.error.connect(lambda msg: print(f"WORKER ERROR: {msg}"), Qt.QueuedConnection)
    worker.finished.connect(lambda: window.set_running(False), Qt.QueuedConnection)

    # Start thread and the first session
    thread.start()
    window.start_requested.emit()

    try:
        result = app.exec_()
    finally:
        cleanup()
        atexit.unregister(cleanup)  # Avoid double cleanup

    return result


def main():
    """Main entry point."""
    args = parse_args()

    # Load config
    from handsignal import load_config
    config = load_config(args.config)

    # Apply CLI overrides
    if args.model:
        config.mediapipe.model_path = str(args.model)
    if args.tick_rate:
        config.scheduler.tick_rate = args.tick_rate
    if args.log_level:
        config.logging.level = args.log_level

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"HandSignal starting...")
    print(f"  Mode: {args.mode}")
    print(f"  Tick rate: {config.scheduler.tick_rate}")
    print(f"  Camera tiers: {', '.join(t.name for t in config.camera.tiers)}")
    print()

    if args.mode == "debug":
        return run_debug(config)
    if args.mode == "headless":
        return run_headless(config)
    return run_monitor(config)


if __name__ == "__main__":
    sys.exit(main())
