from rich.pretty import pprint

from arbor import *

__prog__ = "deployer"


def production(command):
    command.option("force", ["f"], help="Skip confirmations")

    @command.action
    def deploy(command):
        pprint({"targets": command.arguments(), **command.get_options(unprovided=True)})


def build(application):
    application.option("verbose", ["v"], help="Print every step")

    deploy = application.command("deploy", description="Deploy the project to an environment")
    deploy.option("region", ["r"], type=str, default="eu-west", help="Target region")
    deploy.command("staging", description="Deploy to staging", action=lambda command: pprint(command.get_options()))
    deploy.command("production", production, description="Deploy to production")


if __name__ == '__main__':
    Application.create(build, version="1.0.0", description="Deployment helper")
