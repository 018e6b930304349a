"""SylMan: syllabus form-state sync engine."""
