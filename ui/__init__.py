# Qt widgets: scan window, panels, Qt-backed scheduler
