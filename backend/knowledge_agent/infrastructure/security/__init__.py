from .virustotal_scanner import VirusTotalScanner

__all__ = ["VirusTotalScanner"]
