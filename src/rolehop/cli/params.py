from dataclasses import dataclass
from typing import Optional

import typer


OUTPUT_FORMATS = ("text", "json", "yaml")


def output_params(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="How to print the identity/cache report: text (coloured, default), json or yaml. "
        "Secrets are never included.",
    ),
    out_json: bool = typer.Option(False, "--json", help="Same as --output json (for jq/scripts)."),
    out_yaml: bool = typer.Option(False, "--yaml", help="Same as --output yaml."),
    out_text: bool = typer.Option(False, "--text", help="Same as --output text."),
) -> str:
    # cada flag de atalho conta como uma escolha, assim como --output explícito
    chosen = [
        fmt
        for fmt, flag in zip(OUTPUT_FORMATS, (out_text, out_json, out_yaml))
        if flag
    ]
    if output is not None:
        chosen.append(output.lower())

    if len(chosen) > 1:
        raise typer.BadParameter(
            "Choose a single report format: --text, --json, --yaml or --output."
        )

    if not chosen:
        return "text"

    if chosen[0] not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"Unknown report format {chosen[0]!r}; expected one of: {', '.join(OUTPUT_FORMATS)}."
        )

    return chosen[0]


@dataclass
class AuthParams:
    profile: Optional[str]
    region: Optional[str]
    chain_role_arn: Optional[str]


def auth_params(
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        help="AWS profile name (from ~/.aws/credentials). Default: $AWS_PROFILE.",
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        help="AWS region, e.g. sa-east-1. Default: $AWS_REGION / $AWS_DEFAULT_REGION / us-east-1.",
    ),
    chain_role_arn: Optional[str] = typer.Option(
        None,
        "--chain-role-arn",
        help="Role ARN to assume on top of the resolved credentials. Default: $ASSUME_ROLE_CHAIN_ARN.",
    ),
) -> AuthParams:
    return AuthParams(profile=profile, region=region, chain_role_arn=chain_role_arn)
