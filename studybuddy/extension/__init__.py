"""
studybuddy/extension/__init__.py

Client side of Student Buddy: everything that runs next to the browser
rather than on the backend:

  - extractors.py:  per-judge HTML extractors and the page-side content script
  - coordinator.py: holds the latest extracted problem, brokers extraction
                    requests between the popup and the page
  - gateway.py:     httpx client for the backend's analyze endpoint
  - session.py:     hint / pseudo-code reveal state owned by the popup
  - storage.py:     key-value stores for session state and client config
"""
