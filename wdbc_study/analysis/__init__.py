from wdbc_study.analysis.explorer import DataExplorer

__all__ = ["DataExplorer"]
