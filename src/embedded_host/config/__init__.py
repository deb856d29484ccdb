from .loader import load_start_options, load_yaml_config, parse_start_options

__all__ = ["load_start_options", "load_yaml_config", "parse_start_options"]
