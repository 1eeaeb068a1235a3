# --- File: main.py (Bootstrap) ---
import sys
from PySide6.QtWidgets import QApplication

from ui.main_window import MainWindow


def main():
    """Application entry point."""
    print("[MAIN] 🚀 Starting menu editor...")
    app = QApplication(sys.argv)
    app.setApplicationName("Menu Editor")

    try:
        window = MainWindow()
        window.show()
    except Exception as e:
        print(f"[MAIN] ❌ ERROR creating MainWindow: {e}")
        import traceback
        traceback.print_exc()
        return 1

    print("[MAIN] 🔄 Starting event loop...")
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
