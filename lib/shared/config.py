import json;
from typing import Self;
import logging;
import os;
import yaml;


Log = logging.getLogger(__name__);

class Config(object):
    '''
    When instantiated directly, contains the configuration passed in ( empty by default ).

    When instantiated with fromJSON or from_file, contains the configuration stored in the file
    at the given path; a missing file is created from the given default text.
    '''
    def __init__(self, data = None):
        if data == None:
            self.cfg = {};
        else:
            self.cfg = data;

    @classmethod
    def fromJSON(cls, jsonPath, default : str = None):
        return JsonConfig.from_file(jsonPath, default);

    @classmethod
    def FromJSONString(cls, target : str) -> Self:
        return JsonConfig.from_string(target);

    @classmethod
    def from_file(cls, path, default : str = None):
        ext = os.path.splitext(path)[1].lower();
        if ext == ".yaml" or ext == ".yml":
            return YamlConfig.from_file(path, default);
        else:
            return JsonConfig.from_file(path, default);

    @classmethod
    def FromString(cls, target : str, format : str = "json") -> Self:
        fmt = "json";
        if format != None:
            fmt = format.lower();
        if fmt == "yaml" or fmt == "yml":
            return YamlConfig.from_string(target);
        else:
            return JsonConfig.from_string(target);

    def GetValue(self, paramName : str, defaultValue : any):
        if paramName in self.cfg:
            Log.debug(f"Retrieved config value for '{paramName}': {self.cfg[paramName]}")
            return self.cfg[paramName];
        else:
            Log.debug(f"Config parameter '{paramName}' not found, using default value: {defaultValue}")
            return defaultValue;

    # Numeric option, falls back to the default when missing, not a number, or below minimum.
    def GetNumber(self, paramName : str, defaultValue, minimum = 0, exclusive : bool = False):
        value = self.GetValue(paramName, defaultValue);
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            Log.warning(f"Config parameter '{paramName}' is not a number ({value!r}), using default value: {defaultValue}")
            return defaultValue;
        if value < minimum or (exclusive and value == minimum):
            Log.warning(f"Config parameter '{paramName}' is out of range ({value}), using default value: {defaultValue}")
            return defaultValue;
        return value;

    # Fills in every missing key from defaults, returns the list of keys that were missing.
    def ApplyDefaults(self, defaults : dict) -> list[str]:
        missing = [];
        for key in defaults:
            if key not in self.cfg:
                self.cfg[key] = defaults[key];
                missing.append(key);
        if len(missing) > 0:
            Log.debug(f"Config parameters {missing} not found, defaults applied")
        return missing;


def _WriteDefault(path, default : str):
    try:
        with open(path, "wt") as f:
            f.write(default);
        Log.info(f"Default config file created: {path}")
    except OSError as e:
        Log.error(f"Unable to write default config file {path}: {e}")


class JsonConfig(Config):
    @classmethod
    def from_file(cls, jsonPath, default : str = None):
        try:
            Log.debug(f"Attempting to load config from: {jsonPath}")
            with open(jsonPath) as file:
                config = json.load(file);
                instance = cls(config);
                Log.info(f"Successfully loaded config from: {jsonPath}")
                return instance;
        except FileNotFoundError:
            Log.warning(f"Config file not found: {jsonPath}")
            if default != None:
                instance = cls.from_string(default);
                _WriteDefault(jsonPath, default);
                return instance;
        except json.JSONDecodeError as e:
            Log.error(f"Invalid JSON in config file {jsonPath}: {e}")
        except OSError as e:
            Log.error(f"Unable to read config file {jsonPath}: {e}")
        # a file that exists but cannot be read is left alone for the operator to fix
        if default == None:
            return None;
        return cls.from_string(default);

    @classmethod
    def from_string(cls, target : str) -> Self:
        if target != None:
            try:
                Log.debug("Creating config from JSON string")
                config = json.loads(target);
                instance = cls(config);
                Log.debug("Successfully created config from JSON string")
                return instance;
            except json.JSONDecodeError as e:
                Log.error(f"Invalid JSON string provided: {e}")
                return None;
        Log.warning("Attempted to create config from None JSON string")
        return None;


class YamlConfig(Config):
    @classmethod
    def from_file(cls, yamlPath, default : str = None):
        try:
            Log.debug(f"Attempting to load config from: {yamlPath}")
            with open(yamlPath) as file:
                config = yaml.safe_load(file);
                if config == None:
                    config = {};
                instance = cls(config);
                Log.info(f"Successfully loaded config from: {yamlPath}")
                return instance;
        except FileNotFoundError:
            Log.warning(f"Config file not found: {yamlPath}")
            if default != None:
                instance = cls.from_string(default);
                _WriteDefault(yamlPath, default);
                return instance;
        except yaml.YAMLError as e:
            Log.error(f"Invalid YAML in config file {yamlPath}: {e}")
        except OSError as e:
            Log.error(f"Unable to read config file {yamlPath}: {e}")
        # a file that exists but cannot be read is left alone for the operator to fix
        if default == None:
            return None;
        return cls.from_string(default);

    @classmethod
    def from_string(cls, target : str) -> Self:
        if target != None:
            try:
                Log.debug("Creating config from YAML string")
                config = yaml.safe_load(target);
                if config == None:
                    config = {};
                instance = cls(config);
                Log.debug("Successfully created config from YAML string")
                return instance;
            except yaml.YAMLError as e:
                Log.error(f"Error creating config from YAML string: {e}")
                return None;
        Log.warning("Attempted to create config from None YAML string")
        return None;
