import sys
import os
import argparse
import logging
import yaml
from settingfunc import setting_from_config
from ericafunc import EricaFunc
from dosefunc import Result
from outputfunc import OutputFunc


def parse_arguments(argv=None):
    """
        Parse command-line arguments.

        Returns:
            argparse.Namespace: Parsed arguments.
    """
    parser = argparse.ArgumentParser()
    parser.add_argument("--config_file", required=True, help="The path to the config file in yaml format. ")
    parser.add_argument("--library", type=str, help="path for library (overrides library_dir of the config file)")
    parser.add_argument("--logdir", required=True, type=str, help="info.log will be generated")
    parser.add_argument("--output_file_name", type=str, help="output file name", default="pyerica.txt")
    args = parser.parse_args(argv)
    if not os.path.exists(args.logdir):
        os.makedirs(args.logdir)
    return args


def parse_config(configfile: str):
    """
        Parse configuration file.

        Args:
            configfile (str): Path to the configuration file in YAML format.

        Returns:
            dict: Parsed configuration data.
    """
    with open(configfile, "r") as f:
        data = yaml.load(f, Loader=yaml.FullLoader)
    if not isinstance(data, dict):
        raise ValueError("{} must hold a mapping of assessment parameters.".format(configfile))
    return data


def configure_logging(log_file_name):
    """
        Log to <log_file_name>_info.log and to stdout.
    """
    # force replaces the handlers of an earlier run in the same process
    logging.basicConfig(
        filename=f'{log_file_name}_info.log',
        level=logging.INFO,
        filemode="w+",
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )

    # Add a handler to log to stdout
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.INFO)
    logging.getLogger().addHandler(stdout_handler)


def run_assessment(config, library_dir=None):
    """
        Build the Setting described by config, calculate its Result and return it.

        Args:
            config (dict): Parsed configuration.
            library_dir (str, optional): Reference library directory; falls back to config['library_dir'] and then
                to the bundled library.

        Returns:
            Result: Calculated Result.
    """
    if library_dir is None:
        library_dir = config.get('library_dir')
    erica = EricaFunc(library_dir=library_dir)
    setting = setting_from_config(config)
    logging.getLogger("main").info("input description:: \n{input_desc}".format(input_desc=config))
    return Result(setting, erica).calculate()


def main(argv=None):
    """
        Main function to parse arguments, configure logging, parse configuration file, perform dose rate calculation,
        and generate output.
    """
    args = parse_arguments(argv)
    log_file_name = os.path.join(args.logdir, os.path.basename(args.config_file).split('.yaml')[0])

    configure_logging(log_file_name)

    config = parse_config(args.config_file)
    result = run_assessment(config, library_dir=args.library)

    output_func = OutputFunc(result, config=config)
    output_func.output_to_txt(args.output_file_name)
    if config.get('write_csv', True):
        output_func.output_to_csv(prefix=os.path.splitext(args.output_file_name)[0])

    print("Total dose rate per organism (Gy/yr):\n", output_func.total_dose_rate_table())

    logging.getLogger("main").info("path of input file: {config_desc}".format(config_desc=args.config_file))
    logging.getLogger("main").info(
        "output file name: {output_file_name}".format(output_file_name=args.output_file_name))
    return result


if __name__ == "__main__":
    main()
